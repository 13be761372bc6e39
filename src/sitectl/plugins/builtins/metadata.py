"""Built-in plugin exposing site settings as the ``metadata`` query field.

``siteName``, ``siteUrl`` and ``pathPrefix`` come from ``[site]``; every key of
``[site.metadata]`` is added as a JSON field next to them.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any

from graphql import GraphQLField, GraphQLNonNull, GraphQLObjectType, GraphQLString

from sitectl.plugins.hookspecs import HookName
from sitectl.query.schema import JSONScalar

if TYPE_CHECKING:
    from sitectl.plugins.runner import PluginAPI
    from sitectl.store import ContentStore

_NAME_RE = re.compile(r"^[_a-zA-Z][_a-zA-Z0-9]*$")


def setup(api: PluginAPI, options: dict[str, Any]) -> None:
    site = api.config.site

    def create_schema_queries(store: ContentStore) -> dict[str, GraphQLField]:
        values: dict[str, Any] = {
            "siteName": site.name,
            "siteUrl": site.url,
            "pathPrefix": site.path_prefix,
        }
        fields: dict[str, GraphQLField] = {
            name: GraphQLField(GraphQLNonNull(GraphQLString)) for name in values
        }
        for key, value in site.metadata.items():
            if key in fields or not _NAME_RE.match(key):
                continue
            fields[key] = GraphQLField(JSONScalar)
            values[key] = value

        metadata_type = GraphQLObjectType("Metadata", fields=fields)
        return {"metadata": GraphQLField(GraphQLNonNull(metadata_type), resolve=lambda *_: values)}

    api.register_hook(HookName.CREATE_SCHEMA_QUERIES, create_schema_queries)
