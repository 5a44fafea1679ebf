"""Engine error types. Insufficient data is a result, not an exception."""


class EngineError(Exception):
    """Base class for ema_trend_bot errors."""


class AnnotatorUnavailable(EngineError):
    """Narrative service failed: network error, non-2xx, or unparsable output."""


class ConfigurationError(EngineError):
    """Missing or invalid credentials for an optional collaborator."""
