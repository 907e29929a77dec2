"""
Unit Tests for Metrics Normalizer
지표 정규화 테스트

Run: pytest tests/unit/test_metrics.py -v
"""

import pytest
from datetime import timedelta

from pattern_learning.analysis.metrics import MetricsNormalizer, safe_rate
from pattern_learning.models.records import PostRecord


class TestSafeRate:
    """safe_rate 테스트"""

    def test_zero_denominator(self):
        assert safe_rate(10, 0) == 0.0

    def test_missing_denominator(self):
        assert safe_rate(10, None) == 0.0

    def test_regular_rate(self):
        assert safe_rate(25, 100) == pytest.approx(0.25)


class TestPostRecord:
    """입력 레코드 정규화 테스트"""

    def test_counters_coerced(self):
        post = PostRecord(postId="p1", reach=None, likes=-5, saves="12", comments="abc")

        assert post.reach == 0
        assert post.likes == 0
        assert post.saves == 12
        assert post.comments == 0

    def test_hashtags_normalized(self):
        post = PostRecord(postId="p1", hashtags=["#cafe", " latte ", "", "#"])
        assert post.hashtags == ["cafe", "latte"]

    def test_category_defaults_to_feed(self):
        assert PostRecord(postId="p1", category=None).category == "feed"
        assert PostRecord(postId="p2", category="REEL").category == "reel"


class TestMetricsNormalizer:
    """MetricsNormalizer 단위 테스트"""

    @pytest.fixture
    def normalizer(self):
        return MetricsNormalizer()

    def test_empty_input(self, normalizer, as_of):
        assert normalizer.normalize([], as_of=as_of) == []

    def test_rates_use_reach(self, normalizer, as_of):
        post = PostRecord(postId="p1", reach=200, likes=20, comments=4, shares=2, saves=14)
        metrics = normalizer.derive(post, as_of)

        assert metrics.total_engagement == 40
        assert metrics.engagement_rate == pytest.approx(0.2)
        assert metrics.saves_rate == pytest.approx(0.07)
        assert metrics.comments_rate == pytest.approx(0.02)
        assert metrics.likes_rate == pytest.approx(0.1)

    def test_zero_reach_gives_zero_rates(self, normalizer, as_of):
        post = PostRecord(postId="p1", reach=0, likes=50, saves=3)
        metrics = normalizer.derive(post, as_of)

        assert metrics.engagement_rate == 0.0
        assert metrics.saves_rate == 0.0
        assert metrics.reach_to_follower_ratio == 0.0

    def test_reach_to_follower_ratio(self, normalizer, as_of):
        post = PostRecord(postId="p1", reach=500, followerCount=1000)
        assert normalizer.derive(post, as_of).reach_to_follower_ratio == pytest.approx(0.5)

    def test_velocity_per_hour(self, normalizer, as_of):
        post = PostRecord(postId="p1", reach=100, likes=48, publishedAt=as_of - timedelta(hours=24))
        assert normalizer.derive(post, as_of).velocity_score == pytest.approx(2.0)

    def test_velocity_minimum_one_hour(self, normalizer, as_of):
        post = PostRecord(postId="p1", reach=100, likes=30, publishedAt=as_of - timedelta(minutes=10))
        assert normalizer.derive(post, as_of).velocity_score == pytest.approx(30.0)

    def test_velocity_without_timestamp(self, normalizer, as_of):
        post = PostRecord(postId="p1", reach=100, likes=30)
        assert normalizer.derive(post, as_of).velocity_score == 0.0

    def test_duplicates_keep_latest(self, normalizer, as_of):
        older = PostRecord(postId="p1", reach=100, likes=1, publishedAt=as_of - timedelta(days=2))
        newer = PostRecord(postId="p1", reach=100, likes=9, publishedAt=as_of - timedelta(days=1))

        result = normalizer.normalize([newer, older], as_of=as_of)

        assert len(result) == 1
        assert result[0].metrics.likes == 9

    def test_window_filter(self, normalizer, as_of):
        inside = PostRecord(postId="in", publishedAt=as_of - timedelta(days=1))
        outside = PostRecord(postId="out", publishedAt=as_of - timedelta(days=40))
        undated = PostRecord(postId="undated")

        result = normalizer.normalize(
            [inside, outside, undated],
            as_of=as_of,
            window=(as_of - timedelta(days=30), as_of),
        )

        assert sorted(post.post_id for post in result) == ["in", "undated"]

    def test_input_not_mutated(self, normalizer, as_of):
        post = PostRecord(postId="p1", reach=100, likes=10)
        normalizer.normalize([post], as_of=as_of)
        assert post.likes == 10
