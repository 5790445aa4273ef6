"""
Domain exceptions for consultation slots and bookings.

Every error is scoped to the single user action that raised it; the HTTP
layer turns them into user-visible messages and nothing is retried.
"""


class ConsultationError(Exception):
    """Base class for all consultation errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidWindow(ConsultationError):
    """Raised when a window ends before it starts or cannot fit one slot."""


class PastDate(ConsultationError):
    """Raised when a window is declared for a date before today."""


class InvalidDuration(ConsultationError):
    """Raised when a consultation duration is not a usable number of minutes."""


class SlotNotFound(ConsultationError):
    """Raised when a slot id does not resolve to a slot."""


class SlotUnavailable(ConsultationError):
    """Raised when a booking targets a slot that is unavailable or already booked."""


class SlotInUse(ConsultationError):
    """Raised when deleting a slot that is still booked."""


class OwnSlotBooking(ConsultationError):
    """Raised when a seller tries to book one of their own slots."""


class BookingNotFound(ConsultationError):
    """Raised when a booking id does not resolve to a booking."""


class NoActiveBooking(ConsultationError):
    """Raised when cancelling a slot that has no pending or confirmed booking."""


class InvalidStatusTransition(ConsultationError):
    """Raised when a booking cannot move to the requested status."""


class NotPermitted(ConsultationError):
    """Raised when the acting profile does not own the slot or booking."""


class PersistenceFailure(ConsultationError):
    """Raised when the backing store rejects or fails a call."""
