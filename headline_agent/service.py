"""Request handling for the headline webhook, independent of the web framework."""

import logging
from typing import Any, Dict, Tuple

from headline_agent.body_sources import read_body
from headline_agent.envelope import build_error_envelope, build_success_envelope
from headline_agent.errors import HeadlineAgentError
from headline_agent.normalizer import normalize_body, recover_request_id
from headline_agent.pipeline import HeadlinePipeline

logger = logging.getLogger(__name__)


def handle_webhook(source: Any, pipeline: HeadlinePipeline) -> Tuple[int, Dict[str, Any]]:
    """Process one webhook body and return ``(http_status, envelope)``.

    ``source`` may be raw bytes/text, already parsed JSON, a readable stream or
    an iterable of chunks. Failures become JSON-RPC error envelopes carrying
    the request ``id`` when it could be read, ``None`` otherwise.
    """
    request_id = None
    try:
        body = read_body(source)
        request_id = recover_request_id(body)
        item = normalize_body(body)
        logger.info(
            "Headline request id=%r task=%s message=%s tone=%s",
            request_id,
            item.task_id,
            item.message_id,
            item.request.tone,
        )
        result = pipeline.run(item)
        return 200, build_success_envelope(result, request_id)
    except HeadlineAgentError as exc:
        logger.warning(
            "Headline request id=%r failed: %s (code %d)",
            request_id,
            exc.message,
            exc.code,
        )
        return exc.status_code, build_error_envelope(exc, request_id)
    except Exception as exc:
        logger.exception("Unexpected error while handling headline request")
        error = HeadlineAgentError("Internal error", data=str(exc))
        return error.status_code, build_error_envelope(error, request_id)
