import json

import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from codehn.config.settings import get_settings
from codehn.core.errors import CodeHNError, FeedUnavailable
from codehn.models.schemas import PageView
from codehn.services.hn_client import FEED_FILES, HNClient, feed_url, normalize_feed_type
from codehn.tools.logging_setup import setup_logging
from codehn.workflows.get_page import get_engine
setup_logging()


app = typer.Typer(help="Hacker News, but only the github and gitlab links")


def _render_table(page: str, view: PageView) -> Table:
    table = Table(title=f"codehn / {page}", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title")
    table.add_column("Domain", style="cyan")
    table.add_column("Points", justify="right")
    table.add_column("By")
    table.add_column("Age", style="dim")
    table.add_column("Comments", justify="right")

    for rank, st in enumerate(view.stories, start=1):
        table.add_row(
            str(rank),
            f"[link={st.url}]{escape(st.title)}[/link]",
            st.domain_name,
            str(st.score),
            st.by,
            st.human_time,
            f"[link={st.comments_url}]{st.descendants}[/link]",
        )
    return table


@app.command()
def doctor():
    """Check config + upstream connectivity."""
    s = get_settings()
    print("[bold green]Config loaded[/bold green]")
    print("Upstream:", s.hn_base_url, "| timeout:", s.http_timeout)
    print("Allowed hosts:", s.allowed_hosts)
    print(
        "Target:", s.target_count,
        "| Concurrency:", s.max_concurrency,
        "| Admission delay (ms):", s.admission_delay_ms,
    )
    print("Cache TTL (s):", s.cache_ttl_seconds, "| Sweep (s):", s.cache_sweep_seconds)

    client = HNClient(s)
    try:
        ids = client.fetch_story_ids("top")
    except CodeHNError as e:
        print(f"[bold red]Upstream failed[/bold red]: {e}")
        raise SystemExit(1)
    finally:
        client.close()
    print(f"[bold green]Upstream OK[/bold green] ({len(ids)} top ids)")


@app.command()
def feeds():
    """List the feed types and their upstream endpoints."""
    s = get_settings()
    for name in FEED_FILES:
        print(f"{name:5} {feed_url(name, s.hn_base_url)}")


@app.command()
def page(
    feed: str = typer.Argument("top", help="top, new, show or best"),
    as_json: bool = typer.Option(False, "--json", help="Dump the page as JSON."),
):
    """Render one page of eligible stories."""
    name = normalize_feed_type(feed)
    try:
        stories = get_engine().get_page(name)
    except FeedUnavailable as e:
        print(f"[bold red]Page failed[/bold red]: {e}")
        raise SystemExit(1)

    view = PageView(page=name, stories=stories)
    if as_json:
        typer.echo(json.dumps(view.model_dump(mode="json"), indent=2))
        return

    Console().print(_render_table(name, view))


if __name__ == "__main__":
    app()
