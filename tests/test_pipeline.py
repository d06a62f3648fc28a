"""Tests for the generate/select/format headline pipeline."""

import threading
from datetime import datetime, timezone

import pytest

from headline_agent.errors import ProducerFailure, ProducerTimeoutError
from headline_agent.normalizer import normalize_body
from headline_agent.pipeline import (
    HeadlinePipeline,
    fallback_headlines,
    format_headlines,
    utc_timestamp,
)
from headline_agent.producers import HeadlineProducer, TemplateHeadlineProducer
from headline_agent.schemas import HeadlineSet
from tests.conftest import FailingProducer, StaticProducer

FIVE = ["One", "Two", "Three", "Four", "Five"]


class BlockingProducer(HeadlineProducer):
    name = "blocking"

    def __init__(self):
        self.release = threading.Event()

    def generate(self, request, topic, count=5):
        self.release.wait(timeout=5)
        return FIVE


class TimingOutProducer(HeadlineProducer):
    name = "timing-out"

    def generate(self, request, topic, count=5):
        raise ProducerTimeoutError("Headline producer timed out")


class FirstCallBlocksProducer(HeadlineProducer):
    """Hangs on its first call until released; records the worker threads used."""

    name = "first-call-blocks"

    def __init__(self):
        self.release = threading.Event()
        self.threads = []

    def generate(self, request, topic, count=5):
        self.threads.append(threading.current_thread().name)
        if len(self.threads) == 1:
            self.release.wait(timeout=5)
        return FIVE


@pytest.fixture
def item():
    return normalize_body("Our team launched a new analytics dashboard. More soon!")


def test_producer_receives_text_topic_and_count(item):
    producer = StaticProducer(FIVE)
    HeadlinePipeline(producer).run(item)
    request, topic, count = producer.calls[0]
    assert request.text == "Our team launched a new analytics dashboard. More soon!"
    assert topic == "Our team launched a new analytics dashboard"
    assert count == 5


def test_best_is_first_candidate(item):
    result = HeadlinePipeline(StaticProducer(FIVE)).run(item)
    assert result.headlines.candidates == FIVE
    assert result.headlines.best == "One"
    assert result.data["bestHeadline"] == result.data["allHeadlines"][0]


def test_short_output_is_backfilled_deterministically(item):
    pipeline = HeadlinePipeline(StaticProducer(["Only one", "Only two"]))
    first = pipeline.run(item)
    second = pipeline.run(item)

    assert len(first.headlines.candidates) == 5
    assert first.headlines.candidates[:2] == ["Only one", "Only two"]
    assert first.headlines.candidates == second.headlines.candidates
    for headline in first.headlines.candidates[2:]:
        assert "Our team launched a new analytics dashboard"[:40] in headline


def test_long_output_is_truncated(item):
    result = HeadlinePipeline(StaticProducer(FIVE + ["Six", "Seven"])).run(item)
    assert result.headlines.candidates == FIVE


def test_blank_entries_are_dropped_and_whitespace_trimmed(item):
    raw = ["  One ", "", "  ", "Two", "Three\n", "Four", "Five"]
    result = HeadlinePipeline(StaticProducer(raw)).run(item)
    assert result.headlines.candidates == FIVE


def test_producer_headlines_are_not_rewritten(item):
    raw = ['"Move fast" Is Dead', "1. Is Not a Number", "**Bold**", "D", "E"]
    result = HeadlinePipeline(StaticProducer(raw)).run(item)
    assert result.headlines.candidates == raw


def test_template_headlines_keep_their_quotes():
    item = normalize_body('"Done is better than perfect" is my motto.')
    result = HeadlinePipeline(TemplateHeadlineProducer()).run(item)
    assert result.headlines.best == (
        '"Done is better than perfect" is my motto: What You Need to Know'
    )


def test_producer_exception_becomes_producer_failure(item):
    with pytest.raises(ProducerFailure) as exc_info:
        HeadlinePipeline(FailingProducer()).run(item)
    assert exc_info.value.code == -32603
    assert exc_info.value.data == "backend unavailable"


@pytest.mark.parametrize("raw", [None, "One\nTwo", [1, 2], [], ["", "   "]])
def test_unusable_output_is_a_failure(item, raw):
    with pytest.raises(ProducerFailure):
        HeadlinePipeline(StaticProducer(raw)).run(item)


def test_slow_producer_times_out(item):
    producer = BlockingProducer()
    pipeline = HeadlinePipeline(producer, producer_timeout=0.05)
    try:
        with pytest.raises(ProducerTimeoutError) as exc_info:
            pipeline.run(item)
    finally:
        producer.release.set()
        pipeline.close()
    assert exc_info.value.status_code == 504


def test_producer_calls_reuse_the_pipeline_workers(item):
    producer = FirstCallBlocksProducer()
    producer.release.set()
    pipeline = HeadlinePipeline(producer, producer_timeout=5, producer_workers=1)
    try:
        for _ in range(3):
            pipeline.run(item)
    finally:
        pipeline.close()
    assert len(producer.threads) == 3
    assert len(set(producer.threads)) == 1
    assert producer.threads[0].startswith("headline-producer")


def test_abandoned_call_does_not_block_later_requests(item):
    producer = FirstCallBlocksProducer()
    pipeline = HeadlinePipeline(producer, producer_timeout=0.2, producer_workers=2)
    try:
        with pytest.raises(ProducerTimeoutError):
            pipeline.run(item)
        assert pipeline.run(item).headlines.candidates == FIVE
    finally:
        producer.release.set()
        pipeline.close()


def test_pipeline_without_timeout_calls_producer_inline(item):
    producer = FirstCallBlocksProducer()
    producer.release.set()
    HeadlinePipeline(producer).run(item)
    assert producer.threads == [threading.current_thread().name]


def test_producer_timeout_error_passes_through(item):
    with pytest.raises(ProducerTimeoutError):
        HeadlinePipeline(TimingOutProducer()).run(item)


def test_format_stage_output(item):
    moment = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    result = HeadlinePipeline(StaticProducer(FIVE), clock=lambda: moment).run(item)

    assert result.generated_at == "2025-01-02T03:04:05.000Z"
    assert result.data == {
        "bestHeadline": "One",
        "allHeadlines": FIVE,
        "topic": "Our team launched a new analytics dashboard",
        "generatedAt": "2025-01-02T03:04:05.000Z",
    }
    assert result.text.startswith("Here are 5 LinkedIn headline options:\n\n1. One\n\n2. Two")
    assert result.text.endswith("5. Five\n\n💡 Recommended: One")


def test_format_headlines_layout():
    headlines = HeadlineSet(candidates=["A", "B"], best="A")
    assert format_headlines(headlines) == (
        "Here are 2 LinkedIn headline options:\n\n1. A\n\n2. B\n\n💡 Recommended: A"
    )


def test_headline_set_rejects_best_other_than_first():
    with pytest.raises(ValueError):
        HeadlineSet(candidates=["A", "B"], best="B")


def test_fallback_headlines_are_distinct_and_topic_based():
    fillers = fallback_headlines("Remote work", 3)
    assert fillers == [
        "Remote work... 💡",
        "Thoughts on Remote work",
        "Let's Talk About Remote work",
    ]


def test_utc_timestamp_converts_offsets():
    moment = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
    assert utc_timestamp(moment) == "2025-06-01T12:00:00.000Z"
