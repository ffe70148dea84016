import pytest

from harvester.scraper.browser import PlaywrightError, PlaywrightTimeoutError, RenderedPageContent

GAME_URL = "https://www.roblox.com/games/1818/Adventure-Forward"


class FakeLocator:
    def __init__(self, texts, attributes=None):
        self.texts = texts
        self.attributes = attributes or {}

    def count(self):
        return len(self.texts)

    def all_inner_texts(self):
        return list(self.texts)

    @property
    def first(self):
        return self

    def get_attribute(self, name):
        return self.attributes.get(name)


class FakePage:
    def __init__(self, locators=None, title="", hrefs=None, settle=True):
        self.url = GAME_URL
        self.locators = locators or {}
        self._title = title
        self._hrefs = hrefs or []
        self.settle = settle

    def wait_for_load_state(self, state, timeout=None):
        if not self.settle:
            raise PlaywrightTimeoutError("Timeout 5000ms exceeded.")

    def content(self):
        raise PlaywrightError("Target closed")

    def title(self):
        return self._title

    def locator(self, selectors):
        return self.locators.get(selectors, FakeLocator([]))

    def eval_on_selector_all(self, selector, script):
        return list(self._hrefs)


def test_network_idle_timeout_is_not_fatal():
    provider = RenderedPageContent(FakePage(settle=False))
    provider.wait_for_network_idle()
    assert provider.url == GAME_URL


def test_markup_failure_returns_empty_string():
    assert RenderedPageContent(FakePage()).markup() == ""


def test_first_text_skips_blank_candidates():
    selectors = ".playing-count"
    page = FakePage(locators={selectors: FakeLocator(["  ", "1,234 playing"])})
    assert RenderedPageContent(page).first_text(selectors) == "1,234 playing"


@pytest.mark.parametrize("title,expected", [("  Adventure Forward ", "Adventure Forward"), ("", None)])
def test_title(title, expected):
    assert RenderedPageContent(FakePage(title=title)).title() == expected


def test_meta_content_and_links():
    meta = 'meta[property="og:title"], meta[name="og:title"]'
    page = FakePage(
        locators={meta: FakeLocator(["x"], {"content": "Adventure Forward"})},
        hrefs=[GAME_URL + "#about", "https://www.roblox.com/places/3030"],
    )
    provider = RenderedPageContent(page)
    assert provider.meta_content("og:title") == "Adventure Forward"
    assert provider.links() == [GAME_URL, "https://www.roblox.com/places/3030"]
