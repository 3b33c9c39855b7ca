"""Exception hierarchy shared by the evaluation pipeline."""


class PipelineError(Exception):
    """Base class for evaluation pipeline errors."""


class GatewayError(PipelineError):
    """The model gateway failed to return text (network or service error)."""


class GatewayTimeout(GatewayError):
    """The model gateway did not answer within the configured bound."""


class GatewayUnavailable(GatewayError):
    """No model client is configured (e.g. missing API key)."""


class ResponseParseError(PipelineError):
    """Model text could not be parsed into the expected structured shape."""


class RubricConfigError(PipelineError):
    """The rubric configuration is invalid."""
