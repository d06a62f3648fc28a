"""JSON-RPC 2.0 / A2A response envelopes for pipeline results and errors."""

import logging
import uuid
from typing import Any, Dict

from headline_agent.errors import EnvelopeConstructionFailure, HeadlineAgentError
from headline_agent.pipeline import PipelineResult
from headline_agent.schemas import (
    AgentMessage,
    Artifact,
    DataPart,
    JsonRpcErrorBody,
    JsonRpcErrorResponse,
    JsonRpcSuccessResponse,
    TaskResult,
    TaskStatus,
    TextPart,
)

logger = logging.getLogger(__name__)

TEXT_ARTIFACT_NAME = "linkedinHeadlineResponse"
DATA_ARTIFACT_NAME = "HeadlineResults"


def new_identifier(prefix: str) -> str:
    """Mint a process-unique identifier such as ``task-3f2c...``."""
    return f"{prefix}-{uuid.uuid4().hex}"


def build_success_envelope(result: PipelineResult, request_id: Any = None) -> Dict[str, Any]:
    """Wrap a pipeline result in a completed A2A task response.

    ``request_id`` is copied into the envelope untouched; every other
    identifier is freshly minted.
    """
    try:
        envelope = JsonRpcSuccessResponse(
            id=request_id,
            result=TaskResult(
                id=new_identifier("task"),
                context_id=new_identifier("context"),
                status=TaskStatus(
                    timestamp=result.generated_at,
                    message=AgentMessage(
                        message_id=new_identifier("msg"),
                        parts=[TextPart(text=result.text)],
                    ),
                ),
                artifacts=[
                    Artifact(
                        artifact_id=new_identifier("artifact"),
                        name=TEXT_ARTIFACT_NAME,
                        parts=[TextPart(text=result.text)],
                    ),
                    Artifact(
                        artifact_id=new_identifier("data"),
                        name=DATA_ARTIFACT_NAME,
                        parts=[DataPart(data=result.data)],
                    ),
                ],
            ),
        )
        return envelope.to_payload()
    except Exception as exc:
        logger.exception("Failed to build response envelope")
        raise EnvelopeConstructionFailure(
            "Failed to build response envelope", data=str(exc)
        ) from exc


def build_error_envelope(error: HeadlineAgentError, request_id: Any = None) -> Dict[str, Any]:
    """Return the JSON-RPC error response for ``error``."""
    return JsonRpcErrorResponse(
        id=request_id,
        error=JsonRpcErrorBody(**error.to_error_dict()),
    ).to_payload()
