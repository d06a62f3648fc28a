"""Transport extraction for inbound webhook bodies.

A body can arrive already parsed, as raw text/bytes, as a readable stream or
as a push-style stream of chunks. Each strategy below either returns the
parsed body or ``None`` when it does not apply to the given source; the first
strategy that applies wins.
"""

import json
import logging
from typing import Any, Callable, List, Optional

from headline_agent.errors import InvalidProtocolError, MalformedBodyError

logger = logging.getLogger(__name__)

_JSON_OPENERS = ("{", "[", '"')


def _decode(raw: Any) -> str:
    if isinstance(raw, (bytes, bytearray)):
        try:
            return bytes(raw).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedBodyError(
                "Request body is not valid UTF-8", data=str(exc)
            ) from exc
    return str(raw)


class _NonStandardConstant(ValueError):
    pass


def _reject_constant(name: str) -> Any:
    raise _NonStandardConstant(f"{name} is not a JSON value")


def parse_text_body(text: str) -> Any:
    """Parse body text as JSON, falling back to a bare-string prompt.

    Text that starts like a JSON object, array or string must be valid JSON
    (``NaN`` and ``Infinity`` included, which Python would otherwise accept).
    Text that parses to a bare number, boolean or ``null`` is neither an
    object nor a prompt and is rejected. Anything else that is not JSON is
    kept as the prompt text itself.
    """
    stripped = text.lstrip("\ufeff").strip()
    if not stripped:
        raise MalformedBodyError("Request body is empty")
    try:
        parsed = json.loads(stripped, parse_constant=_reject_constant)
    except (json.JSONDecodeError, _NonStandardConstant) as exc:
        if stripped.startswith(_JSON_OPENERS):
            raise MalformedBodyError(
                "Request body is not valid JSON", data=str(exc)
            ) from exc
        return stripped
    if parsed is None or isinstance(parsed, (bool, int, float)):
        raise InvalidProtocolError(
            "Request body must be a JSON object or a text string",
            data=f"Got a JSON {type(parsed).__name__}",
        )
    return parsed


def from_parsed(source: Any) -> Optional[Any]:
    """Structured data a framework has already decoded."""
    if isinstance(source, (dict, list)):
        return source
    return None


def from_text(source: Any) -> Optional[Any]:
    """Raw body text or bytes."""
    if isinstance(source, (str, bytes, bytearray)):
        return parse_text_body(_decode(source))
    return None


def from_readable(source: Any) -> Optional[Any]:
    """File-like objects exposing ``read()``."""
    read = getattr(source, "read", None)
    if not callable(read):
        return None
    try:
        raw = read()
    except Exception as exc:
        raise MalformedBodyError(
            "Failed to read request body stream", data=str(exc)
        ) from exc
    return parse_text_body(_decode(raw))


def from_chunks(source: Any) -> Optional[Any]:
    """Push-style streams delivering the body as an iterable of chunks."""
    if isinstance(source, (str, bytes, bytearray, dict)):
        return None
    try:
        iterator = iter(source)
    except TypeError:
        return None
    try:
        chunks = list(iterator)
    except Exception as exc:
        raise MalformedBodyError(
            "Failed to read request body stream", data=str(exc)
        ) from exc
    if all(isinstance(chunk, (bytes, bytearray)) for chunk in chunks):
        raw: Any = b"".join(bytes(chunk) for chunk in chunks)
    else:
        raw = "".join(_decode(chunk) for chunk in chunks)
    return parse_text_body(_decode(raw))


BODY_EXTRACTORS: List[Callable[[Any], Optional[Any]]] = [
    from_parsed,
    from_text,
    from_readable,
    from_chunks,
]


def read_body(source: Any) -> Any:
    """Return the parsed body using the first extractor that applies to ``source``."""
    for extractor in BODY_EXTRACTORS:
        body = extractor(source)
        if body is not None:
            logger.debug("Request body acquired via %s", extractor.__name__)
            return body
    raise MalformedBodyError(
        "Unsupported request body source", data=type(source).__name__
    )
