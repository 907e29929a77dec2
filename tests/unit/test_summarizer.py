"""
Unit Tests for Pattern Summarizer
패턴 요약 (LLM 협력자) 테스트

Run: pytest tests/unit/test_summarizer.py -v
"""

import json
import time
import pytest
from unittest.mock import MagicMock

from pattern_learning.analysis.tagger import PatternTag
from pattern_learning.core.engine import UserSnapshot
from pattern_learning.services.summarizer import (
    PatternSummarizer,
    build_fallback_summary,
    extract_json,
)


LLM_SUMMARY = json.dumps({
    "summary": "Evening reels with a strong hook",
    "keyThemes": ["hook", 3],
    "cautions": [],
    "suggestedAngles": ["Reuse the first-second hook"],
})


@pytest.fixture
def signals(engine, make_post, as_of):
    posts = [
        make_post(f"reel-{index}", engagement=value, category="reel", hour=19,
                  days_ago=index + 1, hashtags=["reels", "cafe"] if value > 50 else ["reels"])
        for index, value in enumerate([10, 10, 10, 10, 100])
    ]
    return engine.build_signals(UserSnapshot(user_id="u1", posts=posts), as_of)


class TestExtractJson:
    """JSON 추출 테스트"""

    def test_surrounding_text(self):
        assert extract_json('Here you go: {"summary": "ok"} thanks') == {"summary": "ok"}

    def test_no_json(self):
        with pytest.raises(ValueError):
            extract_json("no json here")


class TestFallbackSummary:
    """폴백 요약 테스트"""

    def test_gold_fallback(self, signals):
        gold = [signal for signal in signals if signal.tag == PatternTag.GOLD]
        summary = build_fallback_summary(PatternTag.GOLD, gold)

        assert summary.generated is False
        assert "1 post(s)" in summary.summary
        assert summary.key_themes == ["cafe", "reels"]
        assert summary.cautions == []
        assert summary.suggested_angles

    def test_red_fallback_has_cautions(self, signals):
        red = [signal for signal in signals if signal.tag == PatternTag.RED]
        summary = build_fallback_summary(PatternTag.RED, red)

        assert len(summary.cautions) == 3


class TestPatternSummarizer:
    """PatternSummarizer 단위 테스트"""

    def test_disabled_uses_fallback(self, signals):
        summarizer = PatternSummarizer(generator=None)

        summaries = summarizer.summarize(signals)

        assert set(summaries) == {"gold", "red"}
        assert all(not summary.generated for summary in summaries.values())
        assert summarizer.post_insights(signals) == {}

    def test_generated_summary(self, signals):
        generator = MagicMock()
        generator.invoke.return_value = LLM_SUMMARY
        summarizer = PatternSummarizer(generator=generator, timeout_seconds=2.0)

        summary = summarizer.summarize(signals)["gold"]

        assert summary.generated is True
        assert summary.summary == "Evening reels with a strong hook"
        assert summary.key_themes == ["hook"]
        assert summary.suggested_angles == ["Reuse the first-second hook"]

    def test_generator_error_falls_back(self, signals):
        generator = MagicMock()
        generator.invoke.side_effect = RuntimeError("rate limited")
        summarizer = PatternSummarizer(generator=generator, timeout_seconds=2.0)

        summary = summarizer.summarize(signals)["gold"]

        assert summary.generated is False

    def test_invalid_json_falls_back(self, signals):
        generator = MagicMock()
        generator.invoke.return_value = "Sorry, I cannot help with that."
        summarizer = PatternSummarizer(generator=generator, timeout_seconds=2.0)

        assert summarizer.summarize(signals)["red"].generated is False

    def test_timeout_falls_back(self, signals):
        def slow(*args, **kwargs):
            time.sleep(0.5)
            return LLM_SUMMARY

        generator = MagicMock()
        generator.invoke.side_effect = slow
        summarizer = PatternSummarizer(generator=generator, timeout_seconds=0.05)

        assert summarizer.summarize(signals)["gold"].generated is False

    def test_signals_per_tag_limit(self, signals):
        generator = MagicMock()
        generator.invoke.return_value = LLM_SUMMARY
        summarizer = PatternSummarizer(generator=generator, signals_per_tag=2)

        summarizer.summarize(signals)
        prompts = [call.args[0] for call in generator.invoke.call_args_list]
        red_prompt = next(prompt for prompt in prompts if "needs improvement" in prompt)

        assert red_prompt.count('"title"') == 2

    def test_post_insights(self, signals):
        generator = MagicMock()
        generator.invoke.return_value = json.dumps({
            "summary": "Strong opener",
            "strengths": ["hook"],
            "improvements": [],
            "nextActions": ["post again at 7pm"],
        })
        summarizer = PatternSummarizer(generator=generator, insight_limit=2)

        insights = summarizer.post_insights(signals)

        assert list(insights) == [signal.post_id for signal in signals[:2]]
        assert insights[signals[0].post_id].next_actions == ["post again at 7pm"]

    def test_post_insight_failure_omitted(self, signals):
        generator = MagicMock()
        generator.invoke.side_effect = [RuntimeError("boom"), json.dumps({"summary": "ok"})]
        summarizer = PatternSummarizer(generator=generator, insight_limit=2)

        insights = summarizer.post_insights(signals)

        assert list(insights) == [signals[1].post_id]

    def test_shutdown_falls_back_without_calling_generator(self, signals):
        generator = MagicMock()
        generator.invoke.return_value = LLM_SUMMARY
        summarizer = PatternSummarizer(generator=generator, max_workers=1)

        summarizer.shutdown()
        summary = summarizer.summarize(signals)["gold"]

        assert summary.generated is False
        generator.invoke.assert_not_called()
        assert summarizer.post_insights(signals) == {}
