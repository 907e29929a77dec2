"""
Unit Tests for Pattern Tagger
태그 분류 테스트

Run: pytest tests/unit/test_tagger.py -v
"""

import pytest

from pattern_learning.analysis.sentiment import SentimentLabel
from pattern_learning.analysis.tagger import PatternTag, PatternTagger, assign_tag, percentile


class TestAssignTag:
    """assign_tag 우선순위 테스트"""

    @pytest.mark.parametrize("cpd,sentiment,bottom,expected", [
        (0.5, SentimentLabel.POSITIVE, False, PatternTag.GOLD),
        (0.5, SentimentLabel.NEUTRAL, False, PatternTag.GOLD),
        (0.5, SentimentLabel.NEGATIVE, False, PatternTag.GRAY),
        (-0.5, SentimentLabel.NEGATIVE, False, PatternTag.RED),
        (-0.5, SentimentLabel.NEUTRAL, True, PatternTag.RED),
        (-0.5, SentimentLabel.POSITIVE, True, PatternTag.RED),
        (-0.5, SentimentLabel.POSITIVE, False, PatternTag.GRAY),
        (-0.5, SentimentLabel.NEUTRAL, False, PatternTag.NEUTRAL),
        (0.05, SentimentLabel.NEGATIVE, True, PatternTag.NEUTRAL),
    ])
    def test_priority(self, cpd, sentiment, bottom, expected):
        assert assign_tag(cpd, sentiment, bottom) == expected

    def test_threshold_boundary(self):
        assert assign_tag(0.10, SentimentLabel.NEUTRAL, False) == PatternTag.GOLD
        assert assign_tag(0.0999, SentimentLabel.NEUTRAL, False) == PatternTag.NEUTRAL


class TestPercentile:
    """선형 보간 백분위수"""

    def test_empty(self):
        assert percentile([], 0.1) == 0.0

    def test_interpolation(self):
        assert percentile([0.0, 10.0], 0.1) == pytest.approx(1.0)

    def test_unsorted_input(self):
        assert percentile([5.0, 1.0, 3.0], 0.5) == pytest.approx(3.0)


class TestPatternTagger:
    """PatternTagger 단위 테스트"""

    @pytest.fixture
    def tagger(self):
        return PatternTagger()

    def test_bottom_decile_requires_two_members(self, tagger):
        assert tagger.is_bottom_decile(0.1, [0.1]) is False

    def test_bottom_decile(self, tagger):
        kpis = [0.5, 1.0, 1.2, 1.4, 2.0]
        assert tagger.is_bottom_decile(0.5, kpis) is True
        assert tagger.is_bottom_decile(1.0, kpis) is False

    def test_low_post_in_bottom_decile_is_red(self, tagger):
        tag = tagger.tag(-0.6, SentimentLabel.NEUTRAL, 0.5, [0.5, 1.0, 1.2, 1.4, 2.0])
        assert tag == PatternTag.RED
