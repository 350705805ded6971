import sys
from pathlib import Path

# Ensure the `discovery` package is importable when running pytest from the project root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest  # noqa: E402


class DummyPageSession:
    """In-memory stand-in for a browser page session.

    ``targets`` maps click keys (``"<role>:<pattern>"`` or a CSS selector) to the
    page state that becomes current once the element is clicked.
    """

    def __init__(self, html="", title="", body="", url="https://www.example.com/", targets=None, visible=(), counts=None):
        self.state = {"html": html, "title": title, "body": body, "url": url}
        self.targets = dict(targets or {})
        self.visible = set(visible)
        self.counts = dict(counts or {})
        self.clicks = []
        self.visited = []
        self.goto_error = None
        self.opened = False
        self.closed = False

    def __call__(self, timeout_ms):
        self.timeout_ms = timeout_ms
        return self

    def __enter__(self):
        self.opened = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.closed = True

    @property
    def url(self):
        return self.state["url"]

    def goto(self, url):
        self.visited.append(url)
        if self.goto_error:
            raise self.goto_error

    def wait_for_settle(self, timeout_ms):
        pass

    def wait(self, ms):
        pass

    def title(self):
        return self.state["title"]

    def body_text(self, timeout_ms):
        return self.state["body"]

    def content(self):
        return self.state["html"]

    def count_selector(self, selector):
        return self.counts.get(selector, 0)

    def scroll(self, delta_y):
        pass

    def is_role_visible(self, role, name):
        return f"{role}:{name.pattern}" in self.visible

    def click_role(self, role, name, timeout_ms):
        return self._click(f"{role}:{name.pattern}")

    def click_selector(self, selector, timeout_ms):
        return self._click(selector)

    def _click(self, key):
        if key not in self.targets:
            return False
        self.clicks.append(key)
        self.state = {**self.state, **self.targets.pop(key)}
        return True


@pytest.fixture
def dummy_page():
    return DummyPageSession
