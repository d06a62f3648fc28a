"""Input normalization for the headline webhook.

This module turns a parsed request body (bare string, ``{"text": ...}`` object
or JSON-RPC/A2A envelope) into a cleaned ``GenerationRequest`` and extracts the
short topic used by template-based producers.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup

from headline_agent.body_sources import read_body
from headline_agent.errors import InvalidParamsError, InvalidProtocolError
from headline_agent.schemas import DEFAULT_TONE, TONES, GenerationRequest

logger = logging.getLogger(__name__)

JSONRPC_VERSION = "2.0"
TOPIC_MAX_LENGTH = 90
TOPIC_FALLBACK_LENGTH = 60

_INSTRUCTION_PREFIX = re.compile(
    r"^[^:]*?\b(?:generate|create|write|suggest|give|craft|make)\b[^:]*?\bposts?\b[^:]*:",
    re.IGNORECASE,
)
_SENTENCE_END = re.compile(r"[.!?]+(?:\s|$)")
# Sentence punctuation, dashes and emoji/pictographs left dangling at the end
# of a topic. Symbols that carry meaning (C++, 20%, #hashtag, brackets) stay.
_TRAILING_NOISE = re.compile(
    r"[\s.,;:!?\u2026\-\u2013\u2014"
    r"\u2600-\u27bf\u2b00-\u2bff\U0001f000-\U0001faff\ufe0f\u200d]+$"
)
_TAG = re.compile(r"<[^>]*>")
_MAX_CLEAN_PASSES = 5


@dataclass(frozen=True)
class NormalizedInput:
    """Canonical request plus the envelope identifiers read alongside it."""

    request: GenerationRequest
    topic: str
    request_id: Any = None
    task_id: Optional[str] = None
    message_id: Optional[str] = None


def _normalize_text(text: str) -> str:
    """Normalize whitespace and remove hidden zero-width characters."""
    text = text.replace("\u200b", "").replace("&nbsp;", " ").replace("\xa0", " ")
    return re.sub(r"\s+", " ", text).strip()


def _strip_markup(text: str) -> str:
    if "<" not in text and "&" not in text:
        return text
    stripped = BeautifulSoup(text, "html.parser").get_text(" ")
    # Decoded entities can spell out new tags (e.g. "&lt;b&gt;").
    return _TAG.sub(" ", stripped)


def clean_text(text: str) -> str:
    """Strip markup, decode entities, collapse whitespace and trim.

    Passes repeat until the text is stable so the result is a fixed point:
    cleaning already-cleaned text returns it unchanged.
    """
    cleaned = _normalize_text(text or "")
    for _ in range(_MAX_CLEAN_PASSES):
        previous = cleaned
        cleaned = _normalize_text(_strip_markup(cleaned))
        if cleaned == previous:
            break
    return cleaned


def strip_instruction_prefix(text: str) -> str:
    """Drop an instruction such as "Generate a headline for this post:".

    Detection needs an action verb, the word "post" and a terminating colon.
    Without a colon, or when nothing follows it, the text is returned as is.
    """
    match = _INSTRUCTION_PREFIX.match(text)
    if not match:
        return text
    remainder = text[match.end():].strip()
    return remainder or text


def extract_topic(text: str, max_length: int = TOPIC_MAX_LENGTH) -> str:
    """Return a short topic: the capped first sentence without trailing emoji."""
    first_sentence = _SENTENCE_END.split(text, maxsplit=1)[0].strip()
    if len(first_sentence) > max_length:
        truncated = first_sentence[:max_length]
        if " " in truncated:
            truncated = truncated.rsplit(" ", 1)[0]
        first_sentence = truncated
    topic = _TRAILING_NOISE.sub("", first_sentence).strip()
    if topic:
        return topic

    # No clean sentence boundary: fall back to a fixed-length prefix.
    prefix = text[:TOPIC_FALLBACK_LENGTH].strip()
    return _TRAILING_NOISE.sub("", prefix).strip() or prefix


def _resolve_tone(tone: Any) -> str:
    if tone is None:
        return DEFAULT_TONE
    normalized = str(tone).lower().strip()
    if normalized not in TONES:
        # Unknown tones fall back instead of failing the whole request.
        logger.warning("Unsupported tone %r, using %r", tone, DEFAULT_TONE)
        return DEFAULT_TONE
    return normalized


def _resolve_audience(audience: Any) -> Optional[str]:
    if not isinstance(audience, str):
        return None
    return _normalize_text(audience) or None


def _build_input(
    raw_text: str,
    request_id: Any = None,
    target_audience: Any = None,
    tone: Any = None,
    task_id: Optional[str] = None,
    message_id: Optional[str] = None,
) -> NormalizedInput:
    cleaned = strip_instruction_prefix(clean_text(raw_text))
    if not cleaned:
        raise InvalidParamsError("Text content is empty after cleaning")

    request = GenerationRequest(
        text=cleaned,
        target_audience=_resolve_audience(target_audience),
        tone=_resolve_tone(tone),
    )
    return NormalizedInput(
        request=request,
        topic=extract_topic(cleaned),
        request_id=request_id,
        task_id=task_id if isinstance(task_id, str) else None,
        message_id=message_id if isinstance(message_id, str) else None,
    )


def _options_from_data_parts(parts: list) -> Dict[str, Any]:
    for part in parts:
        if isinstance(part, dict) and part.get("kind") == "data":
            data = part.get("data")
            if isinstance(data, dict):
                return data
    return {}


def _from_envelope(body: Dict[str, Any]) -> NormalizedInput:
    request_id = body.get("id")

    params = body.get("params")
    if not isinstance(params, dict):
        raise InvalidParamsError("Missing params object in JSON-RPC request")

    message = params.get("message")
    if message is None:
        raise InvalidParamsError("Missing params.message")
    if not isinstance(message, dict):
        raise InvalidParamsError("params.message must be an object")

    parts = message.get("parts")
    if parts is None:
        raise InvalidParamsError("Missing params.message.parts")
    if not isinstance(parts, list):
        raise InvalidParamsError("params.message.parts must be an array")
    if not parts:
        raise InvalidParamsError("params.message.parts must not be empty")

    text_part = next(
        (p for p in parts if isinstance(p, dict) and p.get("kind") == "text"),
        None,
    )
    if text_part is None:
        raise InvalidParamsError("params.message.parts contains no text part")
    raw_text = text_part.get("text")
    if not isinstance(raw_text, str):
        raise InvalidParamsError("Text part is missing its text field")

    options = _options_from_data_parts(parts)
    return _build_input(
        raw_text,
        request_id=request_id,
        target_audience=options.get("targetAudience"),
        tone=options.get("tone"),
        task_id=message.get("taskId"),
        message_id=message.get("messageId"),
    )


def _from_object(body: Dict[str, Any]) -> NormalizedInput:
    raw_text = body.get("text")
    if not isinstance(raw_text, str):
        raise InvalidParamsError("Field 'text' must be a string")
    return _build_input(
        raw_text,
        target_audience=body.get("targetAudience"),
        tone=body.get("tone"),
    )


def recover_request_id(body: Any) -> Any:
    """Return the JSON-RPC ``id`` of a parsed body, or ``None`` when absent."""
    if isinstance(body, dict):
        return body.get("id")
    return None


def normalize_body(body: Any) -> NormalizedInput:
    """Validate a parsed body and transform it into a `NormalizedInput`."""
    if isinstance(body, str):
        return _build_input(body)
    if not isinstance(body, dict):
        raise InvalidProtocolError("Request body must be a JSON object or a text string")

    if "jsonrpc" in body:
        if body["jsonrpc"] != JSONRPC_VERSION:
            raise InvalidProtocolError(
                'Invalid JSON-RPC version, expected "2.0"',
                data=f"jsonrpc={body['jsonrpc']!r}",
            )
        return _from_envelope(body)

    if "text" in body:
        return _from_object(body)

    raise InvalidProtocolError('Missing "jsonrpc": "2.0" field')


def normalize_request(source: Any) -> NormalizedInput:
    """Read a raw body source and normalize it in one step."""
    return normalize_body(read_body(source))
