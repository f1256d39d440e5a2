"""Errors raised by the appointment scheduling services."""


class AppointmentError(Exception):
    """Base class for scheduling errors surfaced to callers."""


class NotFoundError(AppointmentError):
    pass


class IllegalTransitionError(AppointmentError):
    """A manual action was requested from a status that does not allow it."""


class SlotUnavailableError(AppointmentError):
    """The requested window is taken, too soon, or outside working hours."""


class BookingNotAllowedError(AppointmentError):
    pass


class StoreError(AppointmentError):
    """The underlying database call failed and was rolled back."""
