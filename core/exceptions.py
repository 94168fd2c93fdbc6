"""Typed exceptions for queue operations."""


class QueueError(Exception):
    """
    Base class for queue validation failures.

    These are caller errors: the queue is unchanged and the request should
    not be retried as-is.
    """


class NotFoundError(QueueError):
    """Referenced entry, shop or service does not exist."""


class InvalidTransitionError(QueueError):
    """
    Requested status change is not reachable from the current status.

    Also raised for edits to an entry that is no longer waiting.
    """


class ConflictError(QueueError):
    """Requested position change does not fit the live queue."""


class ScopeMismatchError(QueueError):
    """Operation spans two shops where a single shop is required."""


class PaymentRequiredError(QueueError):
    """Priority admission requested without paying online."""


class DuplicateActiveEntryError(QueueError):
    """Customer already holds an active entry in some shop's queue."""

    def __init__(self, customer_id, existing_entry_id, shop_id):
        self.customer_id = customer_id
        self.existing_entry_id = existing_entry_id
        self.shop_id = shop_id
        super().__init__(
            f"Customer {customer_id} is already in the queue at shop {shop_id} "
            f"(entry {existing_entry_id})"
        )


class ReconciliationError(Exception):
    """
    Renumbering failed after a status transition.

    Fatal internal fault, not a caller error. The transition that triggered
    it has been rolled back.
    """
