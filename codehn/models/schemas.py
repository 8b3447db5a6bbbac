from pydantic import BaseModel, ConfigDict, Field


class Story(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    by: str = ""
    descendants: int = 0
    kids: tuple[int, ...] = ()
    score: int = 0
    time: int = 0
    title: str = ""
    type: str = ""
    url: str = ""

    # only set on stories that passed the eligibility filter
    domain_name: str = ""
    human_time: str = ""

    @property
    def comments_url(self) -> str:
        return f"https://news.ycombinator.com/item?id={self.id}"


class PageView(BaseModel):
    page: str
    stories: list[Story] = Field(default_factory=list)
