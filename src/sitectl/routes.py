"""Route table construction and path matching.

``create_routes`` derives one entry per standalone page and one per content
type that declares a route template. ``Router`` matches concrete paths against
those patterns; ``:name`` segments become route params.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sitectl.store import ContentStore

_SEGMENT_PARAM = re.compile(r"^:(\w+)$")


@dataclass(frozen=True)
class RouteEntry:
    """One routable page; ``type_name`` is set for content-type templates."""

    path: str
    component: str | None = None
    query: str | None = None
    type_name: str | None = None


@dataclass(frozen=True)
class RouteTable:
    pages: list[RouteEntry] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.pages)


@dataclass(frozen=True)
class MatchedRoute:
    """A path resolved to its route entry plus extracted params."""

    entry: RouteEntry
    path: str
    params: dict[str, str] = field(default_factory=dict)


def create_routes(store: ContentStore) -> RouteTable:
    """Build the route table from the store's current pages and content types."""
    pages = [
        RouteEntry(path=page.route or page.path, component=page.component, query=page.query)
        for page in store.pages
    ]
    for content_type in store.content_types.values():
        if not content_type.route:
            continue
        pages.append(
            RouteEntry(
                path=content_type.route,
                component=content_type.component,
                query=content_type.query,
                type_name=content_type.type_name,
            )
        )
    return RouteTable(pages=pages)


def _compile(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    for segment in pattern.strip("/").split("/"):
        if not segment:
            continue
        param = _SEGMENT_PARAM.match(segment)
        parts.append(f"(?P<{param.group(1)}>[^/]+)" if param else re.escape(segment))
    return re.compile("^/" + "/".join(parts) + "/?$")


class Router:
    """First-match router over a :class:`RouteTable`."""

    def __init__(self, table: RouteTable, *, base: str = "/") -> None:
        self.table = table
        self.base = "/" + base.strip("/") if base.strip("/") else ""
        self._compiled = [(_compile(entry.path), entry) for entry in table.pages]

    def match(self, path: str) -> MatchedRoute | None:
        """Return the first entry whose pattern matches *path*, if any."""
        path = path.split("?", 1)[0].split("#", 1)[0] or "/"
        if self.base and path.startswith(self.base):
            path = path[len(self.base) :] or "/"
        for regex, entry in self._compiled:
            found = regex.match(path)
            if found:
                return MatchedRoute(entry=entry, path=path, params=found.groupdict())
        return None
