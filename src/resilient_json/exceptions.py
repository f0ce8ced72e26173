"""Basic exceptions for resilient JSON decoding"""  # noqa: D415


class ResilientJSONError(Exception):
    """Base exception for resilient-json errors"""  # noqa: D415


class ConfigurationError(ResilientJSONError):
    """Raised when decoder settings fail validation"""  # noqa: D415
