"""
querykit
Typed filter, sort and query constraints over keyed records, with providers
that run them in memory, in SQLite or in Qdrant.
"""

from .config import Config
from .constraints import (
    FilterConstraint, FilterConstraints, FilterOperator,
    QueryConstraints, SortConstraint, SortConstraints, SortDirection
)
from .exceptions import (
    ConstraintError, QueryError, QueryKitError, RequiredError,
    StorageError, UnsupportedOperatorError, UnsupportedQueryError
)
from .providers import DebugProvider, MemoryProvider, Provider, create_provider
from .ranking import MISSING, rank_asc, rank_desc

__version__ = "1.0.0"

__all__ = [
    "FilterConstraint",
    "FilterConstraints",
    "FilterOperator",
    "QueryConstraints",
    "SortConstraint",
    "SortConstraints",
    "SortDirection",
    "Provider",
    "MemoryProvider",
    "DebugProvider",
    "create_provider",
    "Config",
    "MISSING",
    "rank_asc",
    "rank_desc",
    "QueryKitError",
    "ConstraintError",
    "QueryError",
    "UnsupportedQueryError",
    "UnsupportedOperatorError",
    "StorageError",
    "RequiredError",
]
