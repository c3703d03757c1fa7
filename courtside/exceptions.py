"""
Error taxonomy for the scheduling core.

Every rejection carries a stable ``code`` so callers can branch on the kind of
failure without parsing the human-readable message.
"""


class SchedulingError(Exception):
    """Base class for all scheduling rejections"""

    code = 'scheduling_error'
    http_status = 400

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__

    def to_dict(self) -> dict:
        return {'error': self.message, 'code': self.code}


class InvalidInterval(SchedulingError, ValueError):
    """Malformed or inverted time range"""

    code = 'invalid_interval'


class IntervalInPast(InvalidInterval):
    """Cannot create availability for past dates or times"""

    code = 'interval_in_past'


class ConflictError(SchedulingError):
    """Time range collides with an existing availability or reservation"""

    code = 'conflict'
    http_status = 409


class InvalidTransition(SchedulingError):
    """Invite cannot make this transition from its current status"""

    code = 'invalid_transition'
    http_status = 409


class Unauthorized(SchedulingError):
    """Actor is not permitted to perform this transition"""

    code = 'unauthorized'
    http_status = 403


class NotFound(SchedulingError):
    """Record not found"""

    code = 'not_found'
    http_status = 404


class RecurrenceBoundsExceeded(UserWarning):
    """Recurrence expansion was truncated at the hard cap"""
