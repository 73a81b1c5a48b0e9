"""Exceptions raised by the food logger."""


class FoodLoggerError(Exception):
    """Base error for the food logger."""


class ProviderUnavailableError(FoodLoggerError):
    """A product search provider failed or timed out."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Provider {source} unavailable: {reason}")
        self.source = source


class ParserUnavailableError(FoodLoggerError):
    """The free-text parser failed or returned an invalid payload."""


class InvalidBarcodeError(FoodLoggerError, ValueError):
    """Barcode is not an 8-14 digit string."""


class ProductNotFoundError(FoodLoggerError):
    """No product is known for a barcode."""


class UnknownSessionError(FoodLoggerError):
    """No suspended logging action exists for a session id."""


class InvalidAnswerError(FoodLoggerError, ValueError):
    """An answer does not satisfy the pending input request."""
