"""Error taxonomy for the attendance ledger."""


class AttendanceError(Exception):
    """Base class for attendance tracker errors."""


class NotAuthenticatedError(AttendanceError):
    """Raised when no user identity is bound to a call."""


class TransactionConflictError(AttendanceError):
    """Raised when an atomic read-modify-write could not be committed."""


class InvalidStatusError(AttendanceError, ValueError):
    """Raised for a status outside present/absent/not_held."""


class InvalidDateError(AttendanceError, ValueError):
    """Raised for a malformed calendar date key."""


class InvalidDateRangeError(InvalidDateError):
    """Raised when a range starts after it ends."""


class InvalidSubjectError(AttendanceError, ValueError):
    """Raised for an empty subject name."""


class ProviderUnavailableError(AttendanceError):
    """Raised when the schedule provider cannot be reached."""
