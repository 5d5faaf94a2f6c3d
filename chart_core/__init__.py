"""Core (transport-agnostic) chart data logic.

This package contains:
- scalar coercion for untyped dataset cells
- query normalization (wire payload -> ChartQuery)
- the query engine (filter -> group -> aggregate -> shape)
- the in-memory dataset store
- CSV export of chart rows
"""

from chart_core.engine import evaluate
from chart_core.errors import ConfigurationError, DatasetConflict, DatasetNotFound
from chart_core.query import ChartQuery, FilterPredicate, normalize_query

__all__ = [
    "ChartQuery",
    "ConfigurationError",
    "DatasetConflict",
    "DatasetNotFound",
    "FilterPredicate",
    "evaluate",
    "normalize_query",
]
