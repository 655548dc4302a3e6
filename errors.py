"""Error kinds raised by the article and analysis handlers.

Handlers raise these with full detail; only the HTTP boundary in routes.py
replaces them with the fixed client-facing messages below.
"""

CREATE_ARTICLE_FAILED = "Failed to create article"
ANALYZE_TEXT_FAILED = "Failed to analyze text"


class StudyError(Exception):
    """Base class for every error a handler can surface."""

    kind = "error"
    status_code = 500


class ValidationError(StudyError):
    """A required request field is missing or malformed."""

    kind = "validation"
    status_code = 400


class NotFoundError(StudyError):
    kind = "not_found"
    status_code = 404


class UpstreamError(StudyError):
    """The model service failed to answer (transport or HTTP status)."""

    kind = "upstream"
    status_code = 502


class UpstreamResponseShapeError(UpstreamError):
    """The model answered but the reply has no candidate text."""

    kind = "upstream_response_shape"


class ResponseParseError(StudyError):
    """The model's analysis reply is not a JSON object."""

    kind = "response_parse"
    status_code = 502


class UnexpectedError(StudyError):
    """Wraps any other failure; the original exception is chained as __cause__."""

    kind = "unexpected"


def http_status(error: StudyError) -> int:
    return getattr(error, "status_code", 500)
