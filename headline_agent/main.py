"""FastAPI application entrypoint for the LinkedIn headline webhook."""

from contextlib import asynccontextmanager
from functools import lru_cache
import logging
import os
from typing import Union

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from headline_agent.envelope import build_error_envelope
from headline_agent.errors import HeadlineAgentError, PipelineUnavailableError
from headline_agent.pipeline import HeadlinePipeline
from headline_agent.producers import (
    DEFAULT_LLM_BASE_URL,
    DEFAULT_LLM_MODEL,
    ChatCompletionsHeadlineProducer,
    HeadlineProducer,
    TemplateHeadlineProducer,
)
from headline_agent.service import handle_webhook

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# template | remote | seq2seq
HEADLINE_PRODUCER = os.getenv("HEADLINE_PRODUCER", "template").lower()
# Model path can point to a Hugging Face hub ID or local fine-tuned artifacts.
MODEL_PATH = os.getenv("MODEL_PATH", "google/flan-t5-base")
LLM_API_KEY = os.getenv("LLM_API_KEY") or os.getenv("GEMINI_API_KEY", "")
LLM_BASE_URL = os.getenv("LLM_BASE_URL", DEFAULT_LLM_BASE_URL)
LLM_MODEL = os.getenv("LLM_MODEL", DEFAULT_LLM_MODEL)
# Zero disables the bounded wait on the producer.
PRODUCER_TIMEOUT_SECONDS = float(os.getenv("PRODUCER_TIMEOUT_SECONDS", "30")) or None


def build_producer(kind: str) -> HeadlineProducer:
    """Instantiate the configured headline producer."""
    if kind == "template":
        return TemplateHeadlineProducer()
    if kind == "remote":
        return ChatCompletionsHeadlineProducer(
            api_key=LLM_API_KEY,
            model=LLM_MODEL,
            base_url=LLM_BASE_URL,
            timeout=PRODUCER_TIMEOUT_SECONDS,
        )
    if kind == "seq2seq":
        # Imported lazily so torch is only loaded when the local model is used.
        from headline_agent.generator import get_seq2seq_producer

        return get_seq2seq_producer(MODEL_PATH)
    raise ValueError(f"Unknown headline producer: {kind!r}")


@lru_cache(maxsize=1)
def _load_pipeline() -> Union[HeadlinePipeline, PipelineUnavailableError]:
    # A failed build is cached too, so the producer is not rebuilt per request.
    try:
        producer = build_producer(HEADLINE_PRODUCER)
    except Exception as exc:
        logger.exception("Headline producer %r could not be built", HEADLINE_PRODUCER)
        return PipelineUnavailableError("Headline producer is not available", data=str(exc))
    logger.info("Headline pipeline ready with %s producer", producer.name)
    return HeadlinePipeline(producer=producer, producer_timeout=PRODUCER_TIMEOUT_SECONDS)


def get_pipeline() -> HeadlinePipeline:
    """Return the process-wide pipeline; it holds no per-request state."""
    loaded = _load_pipeline()
    if isinstance(loaded, PipelineUnavailableError):
        raise PipelineUnavailableError(loaded.message, data=loaded.data)
    return loaded


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release the producer workers on shutdown."""
    yield
    if _load_pipeline.cache_info().currsize:
        loaded = _load_pipeline()
        if isinstance(loaded, HeadlinePipeline):
            loaded.close()


async def headline_error_handler(request: Request, exc: HeadlineAgentError) -> JSONResponse:
    """Report failures raised before the body is read (the request ``id`` is unknown)."""
    logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=build_error_envelope(exc, None))


app = FastAPI(title="LinkedIn Headline Agent", version="1.0.0", lifespan=lifespan)
app.add_exception_handler(HeadlineAgentError, headline_error_handler)


@app.get("/health")
def health_check():
    """Return service liveness and the configured headline producer."""
    return {"status": "ok", "producer": HEADLINE_PRODUCER}


@app.post("/webhook/linkedin-headline")
async def linkedin_headline_webhook(
    request: Request, pipeline: HeadlinePipeline = Depends(get_pipeline)
):
    """Generate LinkedIn headlines for an A2A JSON-RPC (or plain) request."""
    raw_body = await request.body()
    # Normalization and generation block, so keep them off the event loop.
    status_code, envelope = await run_in_threadpool(handle_webhook, raw_body, pipeline)
    return JSONResponse(status_code=status_code, content=envelope)
