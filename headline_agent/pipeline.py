"""Sequential headline pipeline: generate, select, format.

Each stage consumes the previous stage's record and returns a new one. There
is no branching and no retry: a failing stage aborts the run.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from headline_agent.errors import HeadlineAgentError, ProducerFailure, ProducerTimeoutError
from headline_agent.normalizer import NormalizedInput
from headline_agent.producers import HeadlineProducer
from headline_agent.schemas import HeadlineSet

logger = logging.getLogger(__name__)

HEADLINE_COUNT = 5
FALLBACK_TOPIC_LENGTH = 60
PRODUCER_WORKERS = 4
FALLBACK_FRAMES = (
    "{topic}... 💡",
    "Thoughts on {topic}",
    "Let's Talk About {topic}",
    "{topic}: My Take",
    "Why I'm Paying Attention to {topic}",
)


@dataclass(frozen=True)
class GeneratedHeadlines:
    """Stage 1 output: exactly ``HEADLINE_COUNT`` candidates in producer order."""

    candidates: List[str]
    topic: str
    source_text: str


@dataclass(frozen=True)
class SelectedHeadlines:
    """Stage 2 output."""

    headlines: HeadlineSet
    topic: str
    source_text: str


@dataclass(frozen=True)
class PipelineResult:
    """Stage 3 output: human-readable block plus its machine-readable twin."""

    headlines: HeadlineSet
    topic: str
    source_text: str
    text: str
    data: Dict[str, Any]
    generated_at: str


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def fallback_headlines(topic: str, count: int) -> List[str]:
    """Deterministic topic-derived headlines used to fill missing slots."""
    short_topic = topic[:FALLBACK_TOPIC_LENGTH].strip()
    return [
        FALLBACK_FRAMES[index % len(FALLBACK_FRAMES)].format(topic=short_topic)
        for index in range(count)
    ]


def format_headlines(headlines: HeadlineSet) -> str:
    numbered = "\n\n".join(
        f"{index}. {headline}"
        for index, headline in enumerate(headlines.candidates, start=1)
    )
    return (
        f"Here are {len(headlines.candidates)} LinkedIn headline options:\n\n"
        f"{numbered}\n\n"
        f"💡 Recommended: {headlines.best}"
    )


class HeadlinePipeline:
    """Runs the three headline stages for one normalized request.

    With ``producer_timeout`` set, producer calls run on a worker pool that
    the pipeline owns and reuses across requests. A call that overruns the
    timeout is abandoned rather than interrupted: its worker stays busy until
    the producer returns, and the other workers keep serving requests.
    """

    def __init__(
        self,
        producer: HeadlineProducer,
        headline_count: int = HEADLINE_COUNT,
        producer_timeout: Optional[float] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        producer_workers: int = PRODUCER_WORKERS,
    ):
        self.producer = producer
        self.headline_count = headline_count
        self.producer_timeout = producer_timeout
        self.clock = clock
        self._executor: Optional[ThreadPoolExecutor] = None
        if producer_timeout is not None:
            self._executor = ThreadPoolExecutor(
                max_workers=producer_workers, thread_name_prefix="headline-producer"
            )

    def close(self) -> None:
        """Release the producer workers without waiting for abandoned calls."""
        if self._executor is not None:
            self._executor.shutdown(wait=False, cancel_futures=True)
            self._executor = None

    def _call_producer(self, item: NormalizedInput) -> Any:
        if self._executor is None:
            return self.producer.generate(item.request, item.topic, self.headline_count)

        future = self._executor.submit(
            self.producer.generate, item.request, item.topic, self.headline_count
        )
        try:
            return future.result(timeout=self.producer_timeout)
        except FutureTimeoutError as exc:
            future.cancel()
            raise ProducerTimeoutError(
                "Headline producer timed out",
                data=f"No answer within {self.producer_timeout:g}s",
            ) from exc

    def generate(self, item: NormalizedInput) -> GeneratedHeadlines:
        """Stage 1: call the producer and coerce its output to exactly N candidates."""
        try:
            raw = self._call_producer(item)
        except HeadlineAgentError:
            raise
        except Exception as exc:
            logger.exception("Headline producer %s failed", self.producer.name)
            raise ProducerFailure("Headline producer failed", data=str(exc)) from exc

        if not isinstance(raw, (list, tuple)) or not all(
            isinstance(headline, str) for headline in raw
        ):
            raise ProducerFailure(
                "Headline producer returned unusable data",
                data=f"Expected a list of strings, got {type(raw).__name__}",
            )

        candidates = [headline.strip() for headline in raw]
        candidates = [headline for headline in candidates if headline]
        if not candidates:
            raise ProducerFailure("Headline producer returned no headlines")

        candidates = candidates[: self.headline_count]
        missing = self.headline_count - len(candidates)
        if missing:
            logger.info(
                "Producer returned %d of %d headlines, backfilling",
                len(candidates),
                self.headline_count,
            )
            candidates.extend(fallback_headlines(item.topic, missing))

        return GeneratedHeadlines(
            candidates=candidates,
            topic=item.topic,
            source_text=item.request.text,
        )

    def select(self, generated: GeneratedHeadlines) -> SelectedHeadlines:
        """Stage 2: the first candidate is the recommended one."""
        return SelectedHeadlines(
            headlines=HeadlineSet(
                candidates=generated.candidates, best=generated.candidates[0]
            ),
            topic=generated.topic,
            source_text=generated.source_text,
        )

    def format(self, selected: SelectedHeadlines) -> PipelineResult:
        """Stage 3: build the text block and the structured data artifact."""
        generated_at = utc_timestamp(self.clock())
        headlines = selected.headlines
        return PipelineResult(
            headlines=headlines,
            topic=selected.topic,
            source_text=selected.source_text,
            text=format_headlines(headlines),
            data={
                "bestHeadline": headlines.best,
                "allHeadlines": list(headlines.candidates),
                "topic": selected.topic,
                "generatedAt": generated_at,
            },
            generated_at=generated_at,
        )

    def run(self, item: NormalizedInput) -> PipelineResult:
        generated = self.generate(item)
        logger.info("Generated %d headline candidates", len(generated.candidates))
        return self.format(self.select(generated))
