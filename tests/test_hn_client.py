import pytest
import requests

from codehn.config.settings import Settings
from codehn.core.errors import ItemFetchDropped, UpstreamListUnavailable
from codehn.services.hn_client import HNClient, feed_url, item_url, normalize_feed_type

BASE = "https://hacker-news.firebaseio.com/v0/"


class FakeResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self.payload = payload
        self.status_code = status_code
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=None)

    def json(self):
        if self.bad_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self.payload


class FakeSession:
    def __init__(self, routes=None, error=None):
        self.routes = routes or {}
        self.error = error
        self.calls = []
        self.closed = False

    def get(self, url, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.routes.get(url, FakeResponse(status_code=404))

    def close(self):
        self.closed = True


def _client(session):
    return HNClient(Settings(hn_base_url=BASE, http_timeout=5), session=session)


@pytest.mark.parametrize(
    "feed, path",
    [
        ("top", "topstories.json"),
        ("new", "newstories.json"),
        ("show", "showstories.json"),
        ("best", "beststories.json"),
        ("ask", "topstories.json"),
        ("", "topstories.json"),
        (None, "topstories.json"),
    ],
)
def test_feed_url(feed, path):
    assert feed_url(feed, BASE) == BASE + path


def test_normalize_feed_type():
    assert normalize_feed_type(" NEW ") == "new"
    assert normalize_feed_type("jobs") == "top"


def test_item_url_without_trailing_slash():
    assert item_url(42, BASE.rstrip("/")) == BASE + "item/42.json"


def test_fetch_story_ids():
    session = FakeSession({BASE + "newstories.json": FakeResponse([3, 1, 2])})
    assert _client(session).fetch_story_ids("new") == [3, 1, 2]
    assert session.calls == [(BASE + "newstories.json", 5)]


def test_fetch_story_ids_network_error():
    session = FakeSession(error=requests.ConnectionError("connection refused"))
    with pytest.raises(UpstreamListUnavailable) as exc:
        _client(session).fetch_story_ids("show")
    assert "could not get show hacker news posts list" in str(exc.value)


def test_fetch_story_ids_http_error():
    session = FakeSession({BASE + "topstories.json": FakeResponse(status_code=503)})
    with pytest.raises(UpstreamListUnavailable):
        _client(session).fetch_story_ids("top")


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(bad_json=True),
        FakeResponse({"ids": [1, 2]}),
        FakeResponse([1, "2", 3]),
        FakeResponse([1, True]),
    ],
)
def test_fetch_story_ids_undecodable(response):
    session = FakeSession({BASE + "beststories.json": response})
    with pytest.raises(UpstreamListUnavailable):
        _client(session).fetch_story_ids("best")


def test_fetch_story():
    payload = {
        "by": "dhouston",
        "descendants": 71,
        "id": 8863,
        "kids": [8952, 9224],
        "score": 111,
        "time": 1175714200,
        "title": "My YC app: Dropbox",
        "type": "story",
        "url": "http://www.getdropbox.com/u/2/screencast.html",
    }
    session = FakeSession({BASE + "item/8863.json": FakeResponse(payload)})

    st = _client(session).fetch_story(8863)

    assert st.id == 8863
    assert st.by == "dhouston"
    assert st.kids == (8952, 9224)
    assert st.descendants == 71
    assert st.domain_name == ""


def test_fetch_story_tolerates_missing_fields():
    session = FakeSession({BASE + "item/5.json": FakeResponse({"id": 5, "type": "job", "title": "Hiring"})})
    st = _client(session).fetch_story(5)
    assert st.url == ""
    assert st.kids == ()


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(None),
        FakeResponse(status_code=500),
        FakeResponse(bad_json=True),
        FakeResponse({"title": "no id"}),
        FakeResponse({"id": "abc"}),
    ],
)
def test_fetch_story_drops_bad_items(response):
    session = FakeSession({BASE + "item/9.json": response})
    with pytest.raises(ItemFetchDropped) as exc:
        _client(session).fetch_story(9)
    assert exc.value.story_id == 9


def test_fetch_story_network_error():
    session = FakeSession(error=requests.Timeout("read timed out"))
    with pytest.raises(ItemFetchDropped):
        _client(session).fetch_story(1)


def test_close():
    session = FakeSession()
    _client(session).close()
    assert session.closed
