"""Domain errors raised by the stores and services.

Routes translate these into HTTP responses; see ``timeline.routes.common``.
"""


class TimelineError(Exception):
    """Base class for every error the booking core raises on purpose."""

    code = 'error'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(TimelineError):
    code = 'not_found'


class ConflictError(TimelineError):
    code = 'conflict'


class SlotBusyError(ConflictError):
    """Another booking already holds the slot."""

    code = 'slot_unavailable'

    def __init__(self, slot_id: int):
        super().__init__(f'Slot {slot_id} is already booked.')
        self.slot_id = slot_id


class InvalidInputError(TimelineError):
    code = 'invalid'


class InvalidScheduleError(InvalidInputError):
    code = 'invalid_schedule'


class StoreUnavailableError(TimelineError):
    """The database failed or timed out; the transaction was rolled back."""

    code = 'store_unavailable'
