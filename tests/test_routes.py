"""Tests for route table construction and matching."""

from __future__ import annotations

import pytest

from sitectl.routes import RouteEntry, Router, RouteTable, create_routes
from sitectl.store import ContentStore


@pytest.fixture
def store() -> ContentStore:
    store = ContentStore()
    store.add_page("/", component="Home.vue")
    store.add_page("/tags/:tag", route="/tags/:tag", component="Tag.vue", query="query { x }")
    store.add_content_type("Post", route="/blog/:year/:slug", component="Post.vue")
    store.add_content_type("Author")
    return store


class TestCreateRoutes:
    def test_pages_then_content_types(self, store: ContentStore) -> None:
        table = create_routes(store)
        assert [r.path for r in table.pages] == ["/", "/tags/:tag", "/blog/:year/:slug"]
        assert table.pages[2].type_name == "Post"
        assert table.pages[1].query == "query { x }"

    def test_types_without_route_are_skipped(self, store: ContentStore) -> None:
        assert all(r.type_name != "Author" for r in create_routes(store).pages)

    def test_empty_store(self) -> None:
        assert len(create_routes(ContentStore())) == 0


class TestRouter:
    def test_static_and_param_matches(self, store: ContentStore) -> None:
        router = Router(create_routes(store))

        home = router.match("/")
        assert home is not None
        assert home.entry.component == "Home.vue"

        post = router.match("/blog/2024/hello-world/")
        assert post is not None
        assert post.params == {"year": "2024", "slug": "hello-world"}
        assert post.entry.type_name == "Post"

    def test_query_string_and_fragment_ignored(self, store: ContentStore) -> None:
        match = Router(create_routes(store)).match("/tags/python?page=2#top")
        assert match is not None
        assert match.path == "/tags/python"
        assert match.params == {"tag": "python"}

    def test_no_match(self, store: ContentStore) -> None:
        router = Router(create_routes(store))
        assert router.match("/blog/2024") is None
        assert router.match("/unknown") is None

    def test_first_match_wins(self) -> None:
        table = RouteTable(
            pages=[
                RouteEntry(path="/docs/:page", component="Doc.vue"),
                RouteEntry(path="/docs/index", component="Index.vue"),
            ]
        )
        match = Router(table).match("/docs/index")
        assert match is not None
        assert match.entry.component == "Doc.vue"

    @pytest.mark.parametrize("base", ["/site", "/site/", "site"])
    def test_base_prefix_is_stripped(self, store: ContentStore, base: str) -> None:
        router = Router(create_routes(store), base=base)
        assert router.base == "/site"

        match = router.match("/site/tags/news")
        assert match is not None
        assert match.params == {"tag": "news"}
        assert router.match("/site") is not None
