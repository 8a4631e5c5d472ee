"""Unit tests for the recursive summarizer (scripted completion backend)."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from config import Settings
from engine.summarizer import SummarizationError, Summarizer, split_words
from prompts.system_prompt import build_instruction
from schemas.completion import ContextTooLong, RateLimited, RetryableError, Success


# ── Helpers ────────────────────────────────────────────────────────────

def _words(n: int, prefix: str = "w") -> str:
    return " ".join(f"{prefix}{i}" for i in range(n))


def _count_summary(system: str, user: str) -> Success:  # noqa: ARG001
    """Reply with a one-word marker of how many words were summarised."""
    return Success(text=f"S{len(user.split())}")


class FakeBackend:
    """Completion backend that replays scripted outcomes, then defers to *responder*."""

    def __init__(self, *scripted, responder=_count_summary):
        self.scripted = list(scripted)
        self.responder = responder
        self.calls: list[tuple[str, str]] = []

    async def complete(self, system_prompt: str, user_message: str):
        self.calls.append((system_prompt, user_message))
        if self.scripted:
            outcome = self.scripted.pop(0)
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        return self.responder(system_prompt, user_message)


def _summarizer(backend, sleep=None, **overrides) -> Summarizer:
    return Summarizer(backend, Settings(**overrides), sleep=sleep or AsyncMock())


def _run(summarizer: Summarizer, text: str, target: int | None = None) -> str:
    return asyncio.run(summarizer.summarize(text, target))


# ── Instruction wording ────────────────────────────────────────────────

class TestInstruction:
    def test_singular_word(self):
        prompt = build_instruction(1)
        assert "1 word " in prompt
        assert "1 words" not in prompt

    def test_plural_words(self):
        assert "2 words" in build_instruction(2)
        assert "100 words" in build_instruction(100)

    def test_asks_for_summary_only(self):
        assert "only with the summary" in build_instruction(10)


class TestSplitWords:
    def test_even(self):
        assert split_words(["a", "b", "c", "d"]) == ("a b", "c d")

    def test_odd_puts_extra_word_in_second_half(self):
        assert split_words(["a", "b", "c"]) == ("a", "b c")

    def test_empty(self):
        assert split_words([]) == ("", "")


# ── Base case ──────────────────────────────────────────────────────────

class TestBaseCase:
    def test_end_to_end_short_input(self):
        expected = "this is a ten word summary text example done"
        backend = FakeBackend(Success(text=expected))
        result = _run(_summarizer(backend), _words(50), 10)

        assert result == expected
        assert len(backend.calls) == 1
        system, user = backend.calls[0]
        assert "10 words" in system
        assert user == _words(50)

    def test_threshold_input_is_not_split(self):
        backend = FakeBackend()
        _run(_summarizer(backend), _words(3000))
        assert len(backend.calls) == 1
        assert len(backend.calls[0][1].split()) == 3000

    def test_default_target_is_100_words(self):
        backend = FakeBackend()
        _run(_summarizer(backend), "short text")
        assert "100 words" in backend.calls[0][0]

    def test_target_of_one_is_singular(self):
        backend = FakeBackend()
        _run(_summarizer(backend), "short text", 1)
        assert "1 word " in backend.calls[0][0]

    @pytest.mark.parametrize("target", [0, -5])
    def test_target_below_one_word_rejected(self, target):
        backend = FakeBackend()
        with pytest.raises(ValueError):
            _run(_summarizer(backend), "short text", target)
        assert backend.calls == []

    def test_empty_input_still_calls_backend(self):
        backend = FakeBackend(Success(text="nothing"))
        assert _run(_summarizer(backend), "") == "nothing"
        assert backend.calls[0][1] == ""

    def test_input_text_sent_verbatim(self):
        text = "# Title\n\nFirst paragraph.\nSecond  line."
        backend = FakeBackend()
        _run(_summarizer(backend), text)
        assert backend.calls[0][1] == text


# ── Divide and conquer ─────────────────────────────────────────────────

class TestDivideAndConquer:
    def test_splits_into_near_equal_halves_then_merges(self):
        backend = FakeBackend()
        result = _run(_summarizer(backend), _words(3001))

        assert len(backend.calls) == 3
        sizes = [len(user.split()) for _, user in backend.calls[:2]]
        assert sorted(sizes) == [1500, 1501]
        assert backend.calls[2][1] == "S1500 S1501"
        assert result == "S2"

    def test_halves_are_contiguous(self):
        backend = FakeBackend()
        text = _words(3001)
        _run(_summarizer(backend), text)
        first, second = backend.calls[0][1], backend.calls[1][1]
        assert f"{first} {second}" == text

    def test_seven_thousand_words_needs_several_calls(self):
        backend = FakeBackend()
        _run(_summarizer(backend), _words(7000))
        # 4 leaves of 1750 words, 2 merges, 1 final merge
        assert len(backend.calls) >= 3
        assert len(backend.calls) == 7
        assert all(len(user.split()) <= 3000 for _, user in backend.calls)

    def test_target_word_count_propagates(self):
        backend = FakeBackend()
        _run(_summarizer(backend), _words(7000), 25)
        assert {system for system, _ in backend.calls} == {build_instruction(25)}

    def test_configurable_threshold(self):
        backend = FakeBackend()
        _run(_summarizer(backend, split_threshold_words=10), _words(11))
        assert len(backend.calls) == 3


class TestHardCap:
    def test_only_first_thousand_words_considered(self):
        backend = FakeBackend()
        _run(_summarizer(backend), _words(10_001))

        assert len(backend.calls) == 1
        assert backend.calls[0][1] == _words(1000)

    def test_content_beyond_cap_is_ignored(self):
        a, b = FakeBackend(), FakeBackend()
        head = _words(1000)
        _run(_summarizer(a), head + " " + _words(9500, prefix="x"))
        _run(_summarizer(b), head + " " + _words(9500, prefix="y"))
        assert a.calls == b.calls

    def test_exactly_at_cap_is_not_trimmed(self):
        backend = FakeBackend()
        _run(_summarizer(backend), _words(10_000))
        leaves = [user for _, user in backend.calls if not user.startswith("S")]
        assert sum(len(u.split()) for u in leaves) == 10_000


# ── Backend outcome state machine ─────────────────────────────────────

class TestOutcomeHandling:
    def test_context_too_long_falls_back_to_splitting(self):
        backend = FakeBackend(ContextTooLong())
        text = _words(10)
        result = _run(_summarizer(backend), text)

        assert backend.calls[0][1] == text
        assert [user for _, user in backend.calls[1:3]] == [_words(5), " ".join(text.split()[5:])]
        assert backend.calls[3][1] == "S5 S5"
        assert result == "S2"

    def test_rate_limited_waits_then_reissues_same_request(self):
        sleep = AsyncMock()
        backend = FakeBackend(RateLimited(wait_seconds=5), Success(text="done"))
        result = _run(_summarizer(backend, sleep=sleep), _words(20), 10)

        assert result == "done"
        assert len(backend.calls) == 2
        assert backend.calls[0] == backend.calls[1]
        sleep.assert_awaited_once_with(5)

    def test_retryable_error_retries_immediately(self):
        sleep = AsyncMock()
        backend = FakeBackend(
            RetryableError(reason="bad payload"),
            RetryableError(reason="server error"),
            Success(text="finally"),
        )
        result = _run(_summarizer(backend, sleep=sleep), _words(20))

        assert result == "finally"
        assert len(backend.calls) == 3
        assert backend.calls[0] == backend.calls[1] == backend.calls[2]
        assert all(call.args[0] == 0 for call in sleep.await_args_list)

    def test_unbounded_retries_by_default(self):
        backend = FakeBackend(*[RetryableError(reason="flaky")] * 50, Success(text="ok"))
        assert _run(_summarizer(backend), "text") == "ok"
        assert len(backend.calls) == 51

    def test_bounded_retries_raise_when_exhausted(self):
        backend = FakeBackend(responder=lambda s, u: RetryableError(reason="down"))
        with pytest.raises(SummarizationError):
            _run(_summarizer(backend, max_attempts=3), "text")
        assert len(backend.calls) == 3

    def test_backoff_grows_when_configured(self):
        sleep = AsyncMock()
        backend = FakeBackend(RetryableError(), RetryableError(), Success(text="ok"))
        _run(_summarizer(backend, sleep=sleep, retry_backoff_multiplier=1.0), "text")
        waits = [call.args[0] for call in sleep.await_args_list]
        assert waits == [1.0, 2.0]

    def test_unsplittable_input_too_long_raises(self):
        backend = FakeBackend(ContextTooLong())
        with pytest.raises(SummarizationError):
            _run(_summarizer(backend), "supercalifragilistic")

    def test_transport_failure_propagates(self):
        backend = FakeBackend(ConnectionError("network unreachable"))
        with pytest.raises(ConnectionError):
            _run(_summarizer(backend), "text")
        assert len(backend.calls) == 1


# ── Concurrency ────────────────────────────────────────────────────────

class TestConcurrency:
    class _TrackingBackend:
        def __init__(self):
            self.in_flight = 0
            self.peak = 0
            self.calls = 0

        async def complete(self, system_prompt: str, user_message: str):  # noqa: ARG002
            self.calls += 1
            self.in_flight += 1
            self.peak = max(self.peak, self.in_flight)
            await asyncio.sleep(0.01)
            self.in_flight -= 1
            return Success(text="s")

    def test_halves_run_concurrently(self):
        backend = self._TrackingBackend()
        asyncio.run(Summarizer(backend, Settings()).summarize(_words(7000)))
        assert backend.peak >= 2

    def test_semaphore_bounds_in_flight_calls(self):
        backend = self._TrackingBackend()
        summarizer = Summarizer(backend, Settings(max_concurrent_completions=1))
        asyncio.run(summarizer.summarize(_words(7000)))
        assert backend.calls == 7
        assert backend.peak == 1
