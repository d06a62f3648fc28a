"""LinkedIn headline agent: normalization, pipeline, and A2A envelopes."""

from .envelope import build_error_envelope, build_success_envelope
from .normalizer import NormalizedInput, clean_text, normalize_request
from .pipeline import HeadlinePipeline, PipelineResult
from .producers import (
    ChatCompletionsHeadlineProducer,
    HeadlineProducer,
    TemplateHeadlineProducer,
)
from .schemas import GenerationRequest, HeadlineSet
from .service import handle_webhook

__all__ = [
    "ChatCompletionsHeadlineProducer",
    "GenerationRequest",
    "HeadlinePipeline",
    "HeadlineProducer",
    "HeadlineSet",
    "NormalizedInput",
    "PipelineResult",
    "TemplateHeadlineProducer",
    "build_error_envelope",
    "build_success_envelope",
    "clean_text",
    "handle_webhook",
    "normalize_request",
]
