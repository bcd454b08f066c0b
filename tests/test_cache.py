from rss_dashboard.cache import (
    ARTICLES_KEY,
    DARK_MODE_KEY,
    SELECTED_CATEGORY_KEY,
    ArticleCache,
    CategorySelection,
    ThemePreference,
)
from rss_dashboard.models import ArticleRecord
from rss_dashboard.storage import MemoryStore


def _article(title="Title"):
    return ArticleRecord(
        title=title,
        link="https://example.com/a",
        description="<p>Desc</p>",
        pub_date="Mon, 01 Jan 2024 10:00:00 GMT",
        category="tech",
        feed_name="Feed",
    )


def test_read_after_write_returns_same_list(cache):
    articles = [_article("One"), _article("Two")]

    cache.write(articles)

    assert cache.read() == articles


def test_write_replaces_previous_list(cache):
    cache.write([_article("One"), _article("Two")])
    cache.write([_article("Three")])

    assert [a.title for a in cache.read()] == ["Three"]


def test_read_without_slot_is_none(cache):
    assert cache.read() is None


def test_slot_uses_browser_compatible_layout(store, cache):
    cache.write([_article()])

    assert store.get(ARTICLES_KEY) == (
        '[{"title": "Title", "link": "https://example.com/a", '
        '"description": "<p>Desc</p>", "pubDate": "Mon, 01 Jan 2024 10:00:00 GMT", '
        '"category": "tech", "feedName": "Feed"}]'
    )


def test_corrupt_slot_is_treated_as_absent():
    for raw in ("{not json", '{"title": "x"}', "[1, 2]"):
        cache = ArticleCache(MemoryStore({ARTICLES_KEY: raw}))
        assert cache.read() is None, raw


def test_clear_removes_slot(cache):
    cache.write([_article()])
    cache.clear()

    assert cache.read() is None


def test_theme_defaults_to_light(theme):
    assert theme.is_dark() is False


def test_theme_toggle_persists_flag(store, theme):
    assert theme.toggle() is True
    assert store.get(DARK_MODE_KEY) == "true"
    assert ThemePreference(store).is_dark() is True

    assert theme.toggle() is False
    assert store.get(DARK_MODE_KEY) == "false"


def test_category_selection_round_trips_through_store(store):
    selection = CategorySelection(store)
    assert selection.get() is None

    selection.set("tech")

    assert store.get(SELECTED_CATEGORY_KEY) == "tech"
    assert CategorySelection(store).get() == "tech"
