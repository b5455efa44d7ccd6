"""
Error taxonomy.

Internal components raise these with a full diagnostic in ``detail``.
``Database`` logs the detail and hands the caller ``error.public()``: a fresh
instance of the same class carrying only the generic ``public_message``.
"""


class SafeQueryError(Exception):
    """Base class for every error raised by safequery."""

    category = "database"
    public_message = "Database error."

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.public_message)
        self.detail = detail

    def public(self) -> "SafeQueryError":
        """Same error class, generic message, no diagnostic."""
        return type(self)()


class DBConnectionError(SafeQueryError):
    """The store could not be reached, or the instance is already closed. Terminal."""

    public_message = "Database connection unavailable."


class EncodingError(SafeQueryError):
    """A replacement value has an unsupported type or cannot be encoded safely."""

    public_message = "Database error: unsupported query value."


class TemplateError(SafeQueryError):
    """Placeholder mismatch, or a structural anomaly after substitution."""

    public_message = "Database error: invalid query template."


class GuardError(SafeQueryError):
    """The statement's command class is not allowed."""

    public_message = "Database error: statement not permitted."


class ExecutionError(SafeQueryError):
    """The store rejected or failed the statement."""

    public_message = "Database error: query failed."


class ShapeError(SafeQueryError):
    """A single-row expectation was violated."""

    public_message = "Database error: unexpected result shape."
