"""
Integration Tests for Pattern Learning Engine
정규화 → 클러스터 → 비교 → 태그 → 통계 → 배지 전체 흐름

Run: pytest tests/integration/test_engine_flow.py -v
"""

import json
import pytest

from pattern_learning.analysis.clustering import ClusterBuilder
from pattern_learning.analysis.tagger import PatternTag
from pattern_learning.core.engine import LearningDashboard, PatternLearningEngine, UserSnapshot
from pattern_learning.learning.achievements import BadgeStatus
from pattern_learning.learning.phase import InteractionState, LearningPhase


class TestEngineScenarios:
    """대표 시나리오"""

    def test_empty_user(self, engine, as_of):
        dashboard = engine.run(UserSnapshot(user_id="u1"), as_of=as_of)
        payload = dashboard.to_dict()

        assert payload['signals'] == []
        assert payload['learning_phase'] == "initial"
        assert payload['progress_percent'] == 0.0
        assert len(payload['achievements']) == 14
        assert all(badge['progress'] == 0.0 for badge in payload['achievements'])
        assert payload['message']

    def test_outlier_post_is_gold(self, engine, outlier_cluster_posts, as_of):
        dashboard = engine.run(UserSnapshot(user_id="u1", posts=outlier_cluster_posts), as_of=as_of)
        signals = {signal.post_id: signal for signal in dashboard.signals}

        outlier = signals["reel-4"]
        assert outlier.cluster.baseline_performance == pytest.approx(28.0)
        assert outlier.comparisons.cluster_performance_diff == 2.571429
        assert outlier.significance.cluster_performance.value == "higher"
        assert outlier.tag == PatternTag.GOLD

    def test_low_posts_in_bottom_decile_are_red(self, engine, outlier_cluster_posts, as_of):
        dashboard = engine.run(UserSnapshot(user_id="u1", posts=outlier_cluster_posts), as_of=as_of)
        tags = {signal.post_id: signal.tag for signal in dashboard.signals}

        assert [tags[f"reel-{i}"] for i in range(4)] == [PatternTag.RED] * 4

    def test_negative_feedback_turns_outlier_gray(self, engine, outlier_cluster_posts, make_feedback, as_of):
        feedback = [make_feedback("reel-4", "negative", days_ago=i) for i in range(2)]

        dashboard = engine.run(
            UserSnapshot(user_id="u1", posts=outlier_cluster_posts, feedback=feedback),
            as_of=as_of,
        )
        outlier = next(signal for signal in dashboard.signals if signal.post_id == "reel-4")

        assert outlier.tag == PatternTag.GRAY

    def test_neutral_feedback_keeps_outlier_gold(self, engine, outlier_cluster_posts, make_feedback, as_of):
        feedback = [make_feedback("reel-4", "neutral")]

        dashboard = engine.run(
            UserSnapshot(user_id="u1", posts=outlier_cluster_posts, feedback=feedback),
            as_of=as_of,
        )
        outlier = next(signal for signal in dashboard.signals if signal.post_id == "reel-4")

        assert outlier.comparisons.cluster_performance_diff == 2.571429
        assert outlier.sentiment.label.value == "neutral"
        assert outlier.tag == PatternTag.GOLD

    def test_master_phase(self, engine, as_of):
        state = InteractionState(user_id="u1", total_interactions=12, rag_hit_count=9)
        payload = engine.run(UserSnapshot(user_id="u1", interaction_state=state), as_of=as_of).to_dict()

        assert payload['learning_phase'] == LearningPhase.MASTER.value
        assert payload['progress_percent'] == 75.0
        assert payload['rag_hit_rate'] == 0.75

    def test_partial_badge(self, engine, make_post, as_of):
        # 클러스터마다 [10, 10, 50] → 50인 게시물만 gold
        posts = []
        for cluster in range(7):
            category = f"custom{cluster}"
            posts += [
                make_post(f"{category}-a", engagement=10, category=category),
                make_post(f"{category}-b", engagement=10, category=category),
                make_post(f"{category}-c", engagement=50, category=category),
            ]

        dashboard = engine.run(UserSnapshot(user_id="u1", posts=posts), as_of=as_of)
        gold = next(badge for badge in dashboard.achievements if badge.badge_id == "gold-master")

        assert dashboard.statistics.gold_count == 7
        assert gold.progress == pytest.approx(0.7)
        assert gold.status == BadgeStatus.IN_PROGRESS


class TestEngineInvariants:
    """엔진 불변 조건"""

    def test_signal_cluster_contains_post(self, engine, make_post, as_of):
        posts = [make_post(f"m{i}", hour=9, days_ago=i + 1) for i in range(3)]
        posts += [make_post(f"e{i}", hour=20, days_ago=i + 1) for i in range(3)]
        posts += [make_post("story-1", category="story")]

        snapshot = UserSnapshot(user_id="u1", posts=posts)
        clusters = engine.cluster_builder.build(engine.normalizer.normalize(posts, as_of=as_of))
        members = {cluster.cluster_id: set(cluster.member_ids) for cluster in clusters}

        for signal in engine.build_signals(snapshot, as_of):
            assert signal.post_id in members[signal.cluster.cluster_id]

    def test_significance_matches_comparisons(self, engine, outlier_cluster_posts, as_of):
        signals = engine.build_signals(UserSnapshot(user_id="u1", posts=outlier_cluster_posts), as_of)

        for signal in signals:
            assert signal.significance.cluster_performance == engine.comparator.classify(
                signal.comparisons.cluster_performance_diff
            )

    def test_gold_signals_first(self, engine, outlier_cluster_posts, as_of):
        signals = engine.build_signals(UserSnapshot(user_id="u1", posts=outlier_cluster_posts), as_of)
        assert signals[0].post_id == "reel-4"

    def test_signal_limit(self, engine, outlier_cluster_posts, as_of):
        dashboard = engine.run(UserSnapshot(user_id="u1", posts=outlier_cluster_posts), as_of=as_of, signal_limit=2)

        assert len(dashboard.signals) == 2
        assert dashboard.statistics.gold_count == 1

    def test_post_without_cluster_excluded(self, outlier_cluster_posts, as_of):
        class DroppingBuilder(ClusterBuilder):
            def build(self, posts):
                return super().build([post for post in posts if post.post_id != "reel-0"])

        engine = PatternLearningEngine()
        engine.cluster_builder = DroppingBuilder()

        signals = engine.build_signals(UserSnapshot(user_id="u1", posts=outlier_cluster_posts), as_of)

        assert "reel-0" not in [signal.post_id for signal in signals]
        assert len(signals) == 4

    def test_payload_is_json_serializable(self, engine, outlier_cluster_posts, make_feedback, make_action, as_of):
        snapshot = UserSnapshot(
            user_id="u1",
            posts=outlier_cluster_posts,
            feedback=[make_feedback("reel-1", "positive", comment="love it")],
            action_logs=[make_action("a1", result_delta=2.5)],
        )

        payload = engine.run(snapshot, as_of=as_of).to_dict()

        assert json.loads(json.dumps(payload))['user_id'] == "u1"
        assert payload['timeline'][0]['feedback_count'] == 1

    def test_empty_dashboard_factory(self):
        payload = LearningDashboard.empty("u1", "nothing yet").to_dict()

        assert payload['signals'] == []
        assert payload['message'] == "nothing yet"
        assert payload['learning_phase'] == "initial"

    def test_non_finite_feedback_weight_stays_json_compliant(self, engine, outlier_cluster_posts, make_feedback, as_of):
        feedback = [make_feedback("reel-4", "positive", weight=float("nan"))]

        payload = engine.run(
            UserSnapshot(user_id="u1", posts=outlier_cluster_posts, feedback=feedback),
            as_of=as_of,
        ).to_dict()

        json.dumps(payload, allow_nan=False)
        assert payload['feedback_stats']['average_weight'] == 1.0
