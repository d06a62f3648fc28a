"""Headline producers: turn a cleaned request into candidate headline strings.

The pipeline treats every producer as an opaque ``generate`` call that may
raise or return fewer headlines than requested.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import List, NamedTuple, Optional, Sequence

import requests

from headline_agent.errors import ProducerFailure, ProducerTimeoutError
from headline_agent.prompting import AGENT_INSTRUCTIONS, build_headline_prompt
from headline_agent.schemas import GenerationRequest

logger = logging.getLogger(__name__)

DEFAULT_LLM_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai"
DEFAULT_LLM_MODEL = "gemini-2.5-pro"

_LIST_MARKER = re.compile(r"^\s*(?:\d+[.)]|[-*•](?=\s))\s*")
_QUOTE_PAIRS = {'"': '"', "'": "'", "\u201c": "\u201d", "\u2018": "\u2019"}


def clean_headline(line: str) -> str:
    """Strip list numbering, bullets, bold markers and a wrapping quote pair."""
    line = _LIST_MARKER.sub("", line.strip())
    line = line.replace("**", "").strip()
    if len(line) >= 2 and _QUOTE_PAIRS.get(line[0]) == line[-1]:
        line = line[1:-1].strip()
    return line


def split_headline_lines(text: str) -> List[str]:
    """Split free-text model output into one cleaned headline per line."""
    headlines = []
    for line in (text or "").splitlines():
        headline = clean_headline(line)
        if headline:
            headlines.append(headline)
    return headlines


class HeadlineProducer(ABC):
    """Collaborator producing ordered candidate headlines for a request."""

    name = "producer"

    @abstractmethod
    def generate(
        self, request: GenerationRequest, topic: str, count: int = 5
    ) -> List[str]:
        """Return up to ``count`` headlines, best first."""


class HeadlineCategory(NamedTuple):
    """Keyword predicate paired with the headline frames it selects."""

    name: str
    keywords: Sequence[str]
    frames: Sequence[str]

    def matches(self, text: str) -> bool:
        if not self.keywords:
            return True
        lowered = text.lower()
        return any(
            re.search(rf"\b{re.escape(keyword)}", lowered) for keyword in self.keywords
        )


# Evaluated in order, first match wins; "general" has no keywords and
# therefore matches everything.
HEADLINE_CATEGORIES = (
    HeadlineCategory(
        name="achievement",
        keywords=(
            "completed",
            "finished",
            "achieved",
            "graduated",
            "certified",
            "certification",
            "promoted",
            "milestone",
            "proud",
            "earned",
            "award",
        ),
        frames=(
            "🎉 Just Completed: {topic}",
            "Milestone Unlocked: {topic}",
            "What I Learned From {topic}",
            "Proud Moment: {topic}",
            "The Journey Behind {topic}",
        ),
    ),
    HeadlineCategory(
        name="news",
        keywords=(
            "announce",
            "report",
            "study",
            "research",
            "trend",
            "future",
            "industry",
            "market",
            "analysis",
            "transform",
        ),
        frames=(
            "{topic}: What You Need to Know",
            "Breaking Down {topic}",
            "What {topic} Means for Your Industry",
            "The Real Story Behind {topic}",
            "{topic}: Key Takeaways and Analysis",
        ),
    ),
    HeadlineCategory(
        name="excitement",
        keywords=(
            "excited",
            "thrilled",
            "amazing",
            "can't wait",
            "incredible",
            "delighted",
            "launch",
        ),
        frames=(
            "🚀 Big News: {topic}",
            "I Can't Wait to Share This: {topic}",
            "Something Exciting Is Happening: {topic}",
            "This Changes Everything: {topic}",
            "✨ Thrilled to Share: {topic}",
        ),
    ),
    HeadlineCategory(
        name="general",
        keywords=(),
        frames=(
            "{topic}: What You Need to Know",
            "The Ultimate Guide to {topic}",
            "How {topic} Changed My Perspective",
            "{topic} - Insights from the Field",
            "Why {topic} Matters Now More Than Ever",
        ),
    ),
)


def detect_category(text: str) -> HeadlineCategory:
    for category in HEADLINE_CATEGORIES:
        if category.matches(text):
            return category
    # Unreachable while the last category has no keywords.
    return HEADLINE_CATEGORIES[-1]


class TemplateHeadlineProducer(HeadlineProducer):
    """Deterministic producer interpolating the topic into category frames."""

    name = "template"

    def generate(
        self, request: GenerationRequest, topic: str, count: int = 5
    ) -> List[str]:
        category = detect_category(request.text)
        logger.debug("Template category %s selected", category.name)
        return [frame.format(topic=topic) for frame in category.frames[:count]]


class ChatCompletionsHeadlineProducer(HeadlineProducer):
    """Producer backed by an OpenAI-compatible ``/chat/completions`` endpoint."""

    name = "remote"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_LLM_MODEL,
        base_url: str = DEFAULT_LLM_BASE_URL,
        instructions: str = AGENT_INSTRUCTIONS,
        timeout: Optional[float] = 30.0,
        temperature: float = 0.8,
    ):
        if not api_key:
            raise ValueError("An API key is required for the remote headline producer.")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.instructions = instructions
        self.timeout = timeout
        self.temperature = temperature

    def _build_payload(self, request: GenerationRequest, count: int) -> dict:
        return {
            "model": self.model,
            "temperature": self.temperature,
            "messages": [
                {"role": "system", "content": self.instructions},
                {"role": "user", "content": build_headline_prompt(request, count)},
            ],
        }

    def generate(
        self, request: GenerationRequest, topic: str, count: int = 5
    ) -> List[str]:
        try:
            resp = requests.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=self._build_payload(request, count),
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.Timeout as exc:
            raise ProducerTimeoutError(
                "Headline producer timed out", data=str(exc)
            ) from exc
        except requests.RequestException as exc:
            raise ProducerFailure(
                "Headline producer request failed", data=str(exc)
            ) from exc

        try:
            content = resp.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise ProducerFailure(
                "Headline producer returned an unexpected response", data=str(exc)
            ) from exc

        headlines = split_headline_lines(content)
        logger.info("Remote producer returned %d headline lines", len(headlines))
        return headlines[:count]
