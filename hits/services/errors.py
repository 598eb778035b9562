"""Counter engine errors."""


class CounterError(Exception):
    """Base class for errors raised by the counting engine."""


class InvalidKey(CounterError):
    """Raised when a key is missing, empty or not storable.

    Raised before any storage access, so nothing is written.
    """


class StoreUnavailable(CounterError):
    """Raised when the counter store cannot be reached or times out.

    Safe to retry: increments are at-least-once and reads are pure.
    """
