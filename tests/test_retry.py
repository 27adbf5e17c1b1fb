"""
Tests: RetryController.

Failure policy under test:
    - exceptions are retried with a fixed pause, then surface as 503
    - unparseable output is retried without pause, then the fallback is used
"""

import pytest

from ideaforge.ai.parsing import DOCUMENT_SHAPE, parser_for
from ideaforge.ai.retry import RetryController
from ideaforge.core.exceptions import UpstreamUnavailableError

GOOD = '{"title": "PRD: Shop", "content": "<p>ok</p>"}'
FALLBACK = {"title": "fallback", "content": "<p>fallback</p>"}


class _Gateway:
    """Replays a list of replies; exception instances are raised."""

    def __init__(self, *replies):
        self.replies = list(replies)
        self.prompts = []

    def call_llm(self, prompt):
        self.prompts.append(prompt)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


def _run(gateway, **kwargs):
    sleeps = []
    controller = RetryController(gateway, sleep=sleeps.append, **kwargs)
    outcome = controller.attempt(
        lambda: "prompt",
        parser_for(DOCUMENT_SHAPE),
        lambda: dict(FALLBACK),
        operation="test",
    )
    return outcome, sleeps


class TestRetryController:
    def test_first_attempt_success(self):
        gw = _Gateway(GOOD)
        outcome, sleeps = _run(gw)
        assert outcome.value["title"] == "PRD: Shop"
        assert outcome.degraded is False
        assert outcome.attempts == 1
        assert len(gw.prompts) == 1
        assert sleeps == []

    def test_invalid_then_valid(self):
        gw = _Gateway("garbage", GOOD)
        outcome, sleeps = _run(gw)
        assert outcome.value["title"] == "PRD: Shop"
        assert outcome.attempts == 2
        assert sleeps == []

    def test_invalid_twice_uses_fallback(self):
        gw = _Gateway("garbage", '{"title": "missing content"}')
        outcome, sleeps = _run(gw)
        assert outcome.value == FALLBACK
        assert outcome.degraded is True
        assert len(gw.prompts) == 2
        assert sleeps == []

    def test_exception_then_success_pauses_once(self):
        gw = _Gateway(ConnectionError("reset"), GOOD)
        outcome, sleeps = _run(gw, delay_seconds=1.0)
        assert outcome.degraded is False
        assert sleeps == [1.0]

    def test_exceptions_exhaust_to_503(self):
        gw = _Gateway(ConnectionError("reset"), TimeoutError("slow"))
        with pytest.raises(UpstreamUnavailableError) as exc_info:
            _run(gw, delay_seconds=1.0)
        assert exc_info.value.status_code == 503
        assert isinstance(exc_info.value.__cause__, TimeoutError)
        assert len(gw.prompts) == 2

    def test_no_pause_after_final_attempt(self):
        gw = _Gateway(ConnectionError("a"), ConnectionError("b"), ConnectionError("c"))
        sleeps = []
        controller = RetryController(gw, max_attempts=3, delay_seconds=0.5, sleep=sleeps.append)
        with pytest.raises(UpstreamUnavailableError):
            controller.attempt(lambda: "p", parser_for(DOCUMENT_SHAPE), lambda: FALLBACK)
        assert sleeps == [0.5, 0.5]

    def test_exception_and_invalid_output_is_503(self):
        gw = _Gateway(ConnectionError("reset"), "garbage")
        with pytest.raises(UpstreamUnavailableError):
            _run(gw)

    def test_zero_delay_skips_sleep(self):
        gw = _Gateway(ConnectionError("reset"), GOOD)
        _, sleeps = _run(gw, delay_seconds=0.0)
        assert sleeps == []

    def test_single_attempt(self):
        gw = _Gateway("garbage")
        outcome, _ = _run(gw, max_attempts=1)
        assert outcome.degraded is True
        assert outcome.attempts == 1

    def test_prompt_is_rebuilt_per_attempt(self):
        gw = _Gateway("garbage", GOOD)
        built = []

        def builder():
            built.append(len(built))
            return f"prompt-{len(built)}"

        RetryController(gw, sleep=lambda s: None).attempt(
            builder, parser_for(DOCUMENT_SHAPE), lambda: FALLBACK,
        )
        assert gw.prompts == ["prompt-1", "prompt-2"]

    def test_max_attempts_must_be_positive(self):
        with pytest.raises(ValueError):
            RetryController(_Gateway(), max_attempts=0)
