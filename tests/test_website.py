import pytest
import requests

from discovery.vendors import website


class DummyResponse:
    def __init__(self, text="", status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


class DummySession:
    def __init__(self, response):
        self.response = response
        self.calls = []
        self.closed = False

    def get(self, url, timeout=None, allow_redirects=None):
        self.calls.append({"url": url, "timeout": timeout, "allow_redirects": allow_redirects})
        return self.response

    def close(self):
        self.closed = True


def test_build_session_sets_browser_like_headers():
    session = website.build_session()

    assert session.headers["User-Agent"] == website.USER_AGENT
    assert session.headers["Accept"].startswith("text/html")
    session.close()


def test_fetch_website_html_follows_redirects_with_timeout():
    session = DummySession(DummyResponse("<html>ok</html>"))

    html = website.fetch_website_html("https://joes.example", timeout=7, session=session)

    assert html == "<html>ok</html>"
    assert session.calls == [{"url": "https://joes.example", "timeout": 7, "allow_redirects": True}]
    assert session.closed is False


def test_fetch_website_html_truncates_large_bodies():
    session = DummySession(DummyResponse("x" * 50))

    assert website.fetch_website_html("https://joes.example", max_chars=10, session=session) == "x" * 10


def test_fetch_website_html_raises_on_error_status_and_closes_owned_session(monkeypatch):
    session = DummySession(DummyResponse("denied", status_code=403))
    monkeypatch.setattr(website, "build_session", lambda: session)

    with pytest.raises(requests.HTTPError):
        website.fetch_website_html("https://joes.example")
    assert session.closed is True
