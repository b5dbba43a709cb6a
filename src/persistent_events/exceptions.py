"""Common exceptions for the key-value store layer.

Store failures are surfaced unchanged to whoever called the operation that
touched the store (persisted bind/unbind or a lazy load on trigger).
"""


class KeyStoreError(Exception):
    """Raised when the underlying key-value store fails.

    Adapters wrap their client library errors in this exception and chain
    the original so callers can inspect it.
    """


class KeyStoreKeyError(KeyStoreError, KeyError):
    """Raised when a key doesn't exist in the store."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Key not found: {key}")

    def __str__(self) -> str:
        return f"Key not found: {self.key}"
