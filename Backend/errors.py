"""Error taxonomy for the STL pricing pipeline."""


class QuoteError(Exception):
    """Base class for errors that end a pricing request with a JSON error payload."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ParseError(QuoteError):
    """Malformed, truncated or empty mesh data."""

    status_code = 422


class ModelTooLargeError(QuoteError):
    """Valid geometry whose estimated mass is over the configured limit."""

    status_code = 400

    def __init__(self, mass_grams: float, max_mass_grams: float):
        super().__init__(f"Model exceeds {max_mass_grams:g}g auto limit.")
        self.mass_grams = mass_grams
        self.max_mass_grams = max_mass_grams


class InternalError(QuoteError):
    status_code = 500

    def __init__(self, message: str = "Failed to process STL."):
        super().__init__(message)
