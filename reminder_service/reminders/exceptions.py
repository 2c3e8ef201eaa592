class ReminderError(Exception):
    """Base class for reminder subsystem errors."""


class SelectionError(ReminderError):
    """Candidate query against event storage failed."""


class DeliveryError(ReminderError):
    """Outbound channel failed or reported a non-delivery."""


class LedgerWriteError(ReminderError):
    """Persisting a delivery outcome failed."""
