"""GraphQL layer: schema building and query execution."""

from sitectl.query.execute import execute_document, execute_source
from sitectl.query.schema import JSONScalar, create_schema

__all__ = ["JSONScalar", "create_schema", "execute_document", "execute_source"]
