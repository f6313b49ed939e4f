"""FastAPI integration for cqrs-ddd-query-schema."""

from .dependencies import (
    QuerySchemaConfig,
    error_detail,
    query_params_to_dict,
    query_schema,
)
from .models import ParsedQuery

__all__: list[str] = [
    # Configuration
    "QuerySchemaConfig",
    # Models
    "ParsedQuery",
    # Dependencies
    "query_schema",
    "query_params_to_dict",
    "error_detail",
]
