"""Query execution against a built schema.

Two entry points instead of one that inspects its argument: callers holding
query text use :func:`execute_source`; callers holding a parsed document use
:func:`execute_document`.
"""

from __future__ import annotations

import inspect
from typing import Any

from graphql import DocumentNode, ExecutionResult, GraphQLSchema, execute, graphql, validate


async def execute_source(
    schema: GraphQLSchema,
    source: str,
    *,
    context: dict[str, Any],
    variables: dict[str, Any] | None = None,
) -> ExecutionResult:
    """Parse, validate and execute *source*."""
    return await graphql(
        schema,
        source,
        context_value=context,
        variable_values=variables or {},
    )


async def execute_document(
    schema: GraphQLSchema,
    document: DocumentNode,
    *,
    context: dict[str, Any],
    variables: dict[str, Any] | None = None,
) -> ExecutionResult:
    """Validate and execute an already parsed *document*."""
    errors = validate(schema, document)
    if errors:
        return ExecutionResult(data=None, errors=errors)

    result = execute(
        schema,
        document,
        context_value=context,
        variable_values=variables or {},
    )
    if inspect.isawaitable(result):
        result = await result
    return result
