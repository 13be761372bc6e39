"""In-memory content store.

Content is grouped into named content types (``Post``, ``Author``...). Each
type holds nodes keyed by id. Standalone pages live beside them. Schema and
route building read the store at call time, so a mutation is visible to the
next regeneration without any cache invalidation.
"""

from __future__ import annotations

import hashlib
import re
import unicodedata
from typing import Any

from pydantic import BaseModel, Field

_PARAM_RE = re.compile(r":(\w+)")


def slugify(value: str) -> str:
    """Lowercase, strip accents and punctuation, join words with ``-``."""
    text = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^\w\s-]", "", text.lower())
    return re.sub(r"[\s_-]+", "-", text).strip("-")


def generate_node_id(type_name: str, title: str) -> str:
    """Content-hash id: 8 hex chars of SHA-256 over ``type_name/slug(title)``."""
    digest = hashlib.sha256(f"{type_name}/{slugify(title)}".encode()).hexdigest()[:8]
    return digest


class Node(BaseModel):
    """A single piece of content."""

    model_config = {"frozen": True}

    id: str
    type_name: str
    path: str
    fields: dict[str, Any] = Field(default_factory=dict)


class Page(BaseModel):
    """A standalone page; ``route`` is a pattern such as ``/tags/:tag``."""

    model_config = {"frozen": True}

    path: str
    route: str | None = None
    component: str | None = None
    query: str | None = None


class ContentType:
    """A named collection of nodes sharing a route template."""

    def __init__(
        self,
        type_name: str,
        *,
        route: str | None = None,
        component: str | None = None,
        query: str | None = None,
    ) -> None:
        self.type_name = type_name
        self.route = route
        self.component = component
        self.query = query
        self._nodes: dict[str, Node] = {}

    def add_node(
        self,
        fields: dict[str, Any] | None = None,
        *,
        id: str | None = None,  # noqa: A002
        path: str | None = None,
    ) -> Node:
        """Add or replace a node and return it.

        Without an explicit *id* one is derived from ``fields["title"]``.
        Without an explicit *path* one is derived from the route template.
        """
        fields = dict(fields or {})
        node_id = id or generate_node_id(self.type_name, str(fields.get("title", "")))
        node = Node(
            id=node_id,
            type_name=self.type_name,
            path=path or self._make_path(node_id, fields),
            fields=fields,
        )
        self._nodes[node_id] = node
        return node

    def get_node(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def find_node(self, *, path: str) -> Node | None:
        for node in self._nodes.values():
            if node.path == path:
                return node
        return None

    def remove_node(self, node_id: str) -> bool:
        return self._nodes.pop(node_id, None) is not None

    def nodes(self) -> list[Node]:
        return list(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def _make_path(self, node_id: str, fields: dict[str, Any]) -> str:
        if not self.route:
            return f"/{slugify(self.type_name)}/{node_id}"

        def _param(match: re.Match[str]) -> str:
            name = match.group(1)
            if name == "id":
                return node_id
            if name == "slug" and "slug" not in fields:
                return slugify(str(fields.get("title", node_id)))
            return slugify(str(fields.get(name, "")))

        return _PARAM_RE.sub(_param, self.route)


class ContentStore:
    """Authoritative holder for content types and pages."""

    def __init__(self) -> None:
        self._types: dict[str, ContentType] = {}
        self._pages: dict[str, Page] = {}

    def add_content_type(
        self,
        type_name: str,
        *,
        route: str | None = None,
        component: str | None = None,
        query: str | None = None,
    ) -> ContentType:
        if type_name in self._types:
            msg = f"Content type {type_name!r} already exists"
            raise ValueError(msg)
        content_type = ContentType(type_name, route=route, component=component, query=query)
        self._types[type_name] = content_type
        return content_type

    def get_content_type(self, type_name: str) -> ContentType | None:
        return self._types.get(type_name)

    @property
    def content_types(self) -> dict[str, ContentType]:
        return dict(self._types)

    def add_page(
        self,
        path: str,
        *,
        route: str | None = None,
        component: str | None = None,
        query: str | None = None,
    ) -> Page:
        page = Page(path=path, route=route, component=component, query=query)
        self._pages[path] = page
        return page

    def remove_page(self, path: str) -> bool:
        return self._pages.pop(path, None) is not None

    @property
    def pages(self) -> list[Page]:
        return list(self._pages.values())
