"""
Exception classes for querykit.
"""


class QueryKitError(Exception):
    """Base exception for all querykit errors."""
    pass


class ConstraintError(QueryKitError):
    """Raised when a constraint operation is called with a violated precondition."""
    pass


class QueryError(QueryKitError):
    """Raised when query translation or execution fails."""
    pass


class UnsupportedQueryError(QueryError):
    """Raised when a backend cannot express a query natively."""
    pass


class UnsupportedOperatorError(UnsupportedQueryError):
    """Raised when a backend doesn't support an operator (or its value)."""
    def __init__(self, operator, backend: str, reason: str = ""):
        message = f"Operator {operator.value} is not supported by {backend}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.operator = operator
        self.backend = backend


class StorageError(QueryKitError):
    """Raised when storage operations fail."""
    pass


class RequiredError(StorageError):
    """Raised when an operation requires an item that does not exist."""
    pass
