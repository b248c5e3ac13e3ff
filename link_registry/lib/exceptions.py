"""Exceptions raised by the link registry.

Classes:
    RegistryError:
        Generic base class for registry-related exceptions.

    ConnectivityError:
        The backing store is unreachable or misconfigured, or the registry
        has already been shut down.

    ConstraintViolationError:
        An insert collided with an existing id or url. The message is the
        store's own error text.

    StoreError:
        A query or transaction failed mid-flight; the transaction was rolled back.

    DecodeError:
        A stored row could not be decoded into an Entry.
"""


class RegistryError(Exception):
    """Generic base class for registry-related exceptions."""

    pass


class ConnectivityError(RegistryError):
    """Exception raised when the backing store cannot be reached or used."""

    pass


class ConstraintViolationError(RegistryError):
    """Exception raised when a uniqueness constraint rejects an insert."""

    pass


class StoreError(RegistryError):
    """Exception raised when a store operation fails.

    e.g. query errors, dropped connections, failed commits.
    """

    pass


class DecodeError(RegistryError):
    """Exception raised when a row holds malformed data."""

    pass
