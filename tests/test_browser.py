from discovery.core.browser import PlaywrightPageSession


class DummyResource:
    def __init__(self, name, closed, error=None):
        self.name = name
        self.closed = closed
        self.error = error

    def _finish(self):
        self.closed.append(self.name)
        if self.error is not None:
            raise self.error

    close = _finish
    stop = _finish


def make_session(closed, **errors):
    session = PlaywrightPageSession()
    session._context = DummyResource("context", closed, errors.get("context"))
    session._browser = DummyResource("browser", closed, errors.get("browser"))
    session._playwright = DummyResource("playwright", closed, errors.get("playwright"))
    session._page = object()
    return session


def test_close_tears_down_in_order():
    closed = []
    session = make_session(closed)

    session.close()

    assert closed == ["context", "browser", "playwright"]
    assert session._page is None


def test_close_continues_after_failures():
    closed = []
    session = make_session(closed, context=RuntimeError("target closed"), browser=RuntimeError("crashed"))

    session.close()

    assert closed == ["context", "browser", "playwright"]
    assert session._context is None
    assert session._browser is None
    assert session._playwright is None


def test_exit_does_not_raise_when_teardown_fails():
    closed = []
    session = make_session(closed, playwright=RuntimeError("driver gone"))

    assert session.__exit__(None, None, None) is None
    assert closed == ["context", "browser", "playwright"]

    session.close()
    assert closed == ["context", "browser", "playwright"]
