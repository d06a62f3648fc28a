"""Exception hierarchy mapped onto JSON-RPC 2.0 error codes and HTTP statuses."""

from enum import IntEnum
from typing import Any, Dict, Optional


class JsonRpcErrorCode(IntEnum):
    """JSON-RPC 2.0 error codes returned in the ``error.code`` field."""

    INVALID_REQUEST = -32600
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    # Implementation-defined server error range (-32000 to -32099).
    PRODUCER_TIMEOUT = -32001


class HeadlineAgentError(Exception):
    """
    Base exception for every failure reported as a JSON-RPC error envelope.

    Subclasses pin the JSON-RPC code and the HTTP status; instances carry the
    human-readable message and optional details for ``error.data``.
    """

    code: JsonRpcErrorCode = JsonRpcErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, data: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.data = data

    def to_error_dict(self) -> Dict[str, Any]:
        """Return the ``error`` member of a JSON-RPC response."""
        error: Dict[str, Any] = {"code": int(self.code), "message": self.message}
        if self.data:
            error["data"] = self.data
        return error


class MalformedBodyError(HeadlineAgentError):
    """Request body could not be read or parsed as JSON/text."""

    code = JsonRpcErrorCode.INVALID_REQUEST
    status_code = 400


class InvalidProtocolError(HeadlineAgentError):
    """Body is not a JSON-RPC 2.0 request (or a supported plain shape)."""

    code = JsonRpcErrorCode.INVALID_REQUEST
    status_code = 400


class InvalidParamsError(HeadlineAgentError):
    """Envelope params do not carry a usable text message."""

    code = JsonRpcErrorCode.INVALID_PARAMS
    status_code = 400


class ProducerFailure(HeadlineAgentError):
    """Headline producer raised or returned unusable data."""

    code = JsonRpcErrorCode.INTERNAL_ERROR
    status_code = 500


class ProducerTimeoutError(HeadlineAgentError):
    """Headline producer did not answer within the configured wait."""

    code = JsonRpcErrorCode.PRODUCER_TIMEOUT
    status_code = 504


class EnvelopeConstructionFailure(HeadlineAgentError):
    """Response envelope could not be assembled from the pipeline output."""

    code = JsonRpcErrorCode.INTERNAL_ERROR
    status_code = 500


class PipelineUnavailableError(HeadlineAgentError):
    """The configured headline producer could not be built."""

    code = JsonRpcErrorCode.INTERNAL_ERROR
    status_code = 500
