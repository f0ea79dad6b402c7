# core/errors.py


class TravelError(Exception):
    """Base class for every failure raised by the travel core."""


class ProviderError(TravelError):
    """A call to an external provider failed, timed out or returned an error status."""


class WeatherError(ProviderError):
    pass


class GenerationError(ProviderError):
    pass


class ExtractionError(TravelError):
    """
    The model answered, but no JSON payload could be recovered from its text.
    `raw` keeps the untouched model output for logging.
    """

    def __init__(self, message: str, raw: str = ""):
        super().__init__(message)
        self.raw = raw


class ResponseSchemaError(ExtractionError):
    """The payload parsed as JSON but does not have the expected shape."""
