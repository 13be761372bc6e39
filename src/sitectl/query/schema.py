"""GraphQL schema construction from the content store.

Every content type becomes an object type with ``id``, ``path`` and one field
per node field seen in the store. The root ``Query`` gets a single-node
lookup (``post(id:, path:)``) and a list field (``allPost``) per type, plus
any extension fields contributed by plugins.

Resolvers read the store from the execution context, never from a snapshot,
so queries always see current content.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from graphql import (
    GraphQLArgument,
    GraphQLBoolean,
    GraphQLField,
    GraphQLFloat,
    GraphQLID,
    GraphQLInt,
    GraphQLList,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLOutputType,
    GraphQLResolveInfo,
    GraphQLScalarType,
    GraphQLSchema,
    GraphQLString,
    value_from_ast_untyped,
)

if TYPE_CHECKING:
    from sitectl.store import ContentStore, ContentType, Node

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[_a-zA-Z][_a-zA-Z0-9]*$")
_RESERVED_FIELDS = frozenset({"id", "path"})

JSONScalar = GraphQLScalarType(
    name="JSON",
    description="Arbitrary JSON value.",
    serialize=lambda value: value,
    parse_value=lambda value: value,
    parse_literal=value_from_ast_untyped,
)


def _scalar_for(value: Any) -> GraphQLOutputType:
    # bool is an int subclass, so it goes first.
    if isinstance(value, bool):
        return GraphQLBoolean
    if isinstance(value, int):
        return GraphQLInt
    if isinstance(value, float):
        return GraphQLFloat
    if isinstance(value, str):
        return GraphQLString
    return JSONScalar


def _field_resolver(name: str) -> Any:
    def resolve(node: Node, _info: GraphQLResolveInfo) -> Any:
        return node.fields.get(name)

    return resolve


def _infer_fields(content_type: ContentType) -> dict[str, GraphQLField]:
    fields: dict[str, GraphQLField] = {
        "id": GraphQLField(GraphQLNonNull(GraphQLID)),
        "path": GraphQLField(GraphQLNonNull(GraphQLString)),
    }
    for node in content_type.nodes():
        for name, value in node.fields.items():
            if name in fields or value is None:
                continue
            if name in _RESERVED_FIELDS or not _NAME_RE.match(name):
                logger.debug("Skipping field %r on %s", name, content_type.type_name)
                continue
            fields[name] = GraphQLField(_scalar_for(value), resolve=_field_resolver(name))
    return fields


def _lower_first(name: str) -> str:
    return name[:1].lower() + name[1:]


def _node_resolver(type_name: str) -> Any:
    def resolve(
        _root: Any,
        info: GraphQLResolveInfo,
        id: str | None = None,  # noqa: A002
        path: str | None = None,
    ) -> Node | None:
        content_type = info.context["store"].get_content_type(type_name)
        if content_type is None:
            return None
        if id is not None:
            return content_type.get_node(id)
        if path is not None:
            return content_type.find_node(path=path)
        return None

    return resolve


def _all_nodes_resolver(type_name: str) -> Any:
    def resolve(_root: Any, info: GraphQLResolveInfo) -> list[Node]:
        content_type = info.context["store"].get_content_type(type_name)
        return content_type.nodes() if content_type is not None else []

    return resolve


def create_schema(
    store: ContentStore,
    *,
    queries: dict[str, GraphQLField] | None = None,
) -> GraphQLSchema:
    """Build a schema for the store's current content types.

    *queries* are merged into the root ``Query`` type last, so a plugin can
    replace a generated field by reusing its name.
    """
    query_fields: dict[str, GraphQLField] = {}

    for type_name, content_type in store.content_types.items():
        if not _NAME_RE.match(type_name):
            logger.warning("Content type %r is not a valid GraphQL name; skipped", type_name)
            continue
        node_type = GraphQLObjectType(type_name, fields=_infer_fields(content_type))
        query_fields[_lower_first(type_name)] = GraphQLField(
            node_type,
            args={
                "id": GraphQLArgument(GraphQLID),
                "path": GraphQLArgument(GraphQLString),
            },
            resolve=_node_resolver(type_name),
        )
        query_fields[f"all{type_name}"] = GraphQLField(
            GraphQLNonNull(GraphQLList(GraphQLNonNull(node_type))),
            resolve=_all_nodes_resolver(type_name),
        )

    query_fields.update(queries or {})

    if not query_fields:
        # GraphQL requires at least one field on the root type.
        query_fields["_empty"] = GraphQLField(GraphQLString)

    return GraphQLSchema(query=GraphQLObjectType("Query", fields=query_fields))
