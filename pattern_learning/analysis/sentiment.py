"""
Feedback Sentiment Aggregation
게시물별 피드백 감정 집계

Features:
- 가중치 기반 긍정 비율 점수
- 레이블 (positive, negative, neutral)
- 감정별 건수 집계

Author: Pattern Learning Team
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Dict, Any, Iterable
import logging

from pattern_learning.models.records import FeedbackEntry, FeedbackSentiment

logger = logging.getLogger(__name__)


class SentimentLabel(str, Enum):
    """감정 레이블"""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


@dataclass
class SentimentConfig:
    """감정 집계 설정"""
    positive_threshold: float = 0.6
    negative_threshold: float = 0.4
    no_feedback_score: float = 0.5
    neutral_credit: float = 0.5


@dataclass
class PostSentiment:
    """게시물 감정 집계 결과"""
    score: float = 0.5
    label: SentimentLabel = SentimentLabel.NEUTRAL
    positive: int = 0
    negative: int = 0
    neutral: int = 0
    positive_weight: float = 0.0
    negative_weight: float = 0.0
    comments: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.positive + self.negative + self.neutral

    @property
    def is_negative(self) -> bool:
        return self.label == SentimentLabel.NEGATIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': round(self.score, 2),
            'label': self.label.value,
            'counts': {
                'positive': self.positive,
                'negative': self.negative,
                'neutral': self.neutral,
            },
        }


class FeedbackSentimentAggregator:
    """
    피드백 감정 집계기

    score = (긍정 가중치 + 중립 건수 × 0.5) / (긍정 가중치 + 부정 가중치 + 중립 건수)
    중립 피드백만 있으면 0.5 (neutral)
    피드백이 없으면 0.5 (neutral)
    """

    def __init__(self, config: SentimentConfig = None):
        self.config = config or SentimentConfig()

    def aggregate(self, entries: Iterable[FeedbackEntry]) -> Dict[str, PostSentiment]:
        """
        postId별 감정 집계

        Args:
            entries: 피드백 엔트리 (postId 없는 엔트리는 무시)

        Returns:
            postId → PostSentiment
        """
        grouped: Dict[str, PostSentiment] = {}

        for entry in entries:
            if not entry.post_id:
                continue
            sentiment = grouped.setdefault(entry.post_id, PostSentiment())

            if entry.sentiment == FeedbackSentiment.POSITIVE:
                sentiment.positive += 1
                sentiment.positive_weight += entry.weight
            elif entry.sentiment == FeedbackSentiment.NEGATIVE:
                sentiment.negative += 1
                sentiment.negative_weight += entry.weight
            else:
                sentiment.neutral += 1

            if entry.has_comment:
                sentiment.comments.append(entry.comment)

        for sentiment in grouped.values():
            self._score(sentiment)

        return grouped

    def for_post(self, aggregates: Dict[str, PostSentiment], post_id: str) -> PostSentiment:
        """피드백이 없는 게시물은 기본값"""
        existing = aggregates.get(post_id)
        if existing is not None:
            return existing
        return PostSentiment(score=self.config.no_feedback_score)

    def _score(self, sentiment: PostSentiment):
        total_weight = sentiment.positive_weight + sentiment.negative_weight + sentiment.neutral
        if total_weight > 0:
            credited = sentiment.positive_weight + sentiment.neutral * self.config.neutral_credit
            sentiment.score = credited / total_weight
        else:
            sentiment.score = self.config.no_feedback_score

        if sentiment.score >= self.config.positive_threshold:
            sentiment.label = SentimentLabel.POSITIVE
        elif sentiment.score <= self.config.negative_threshold:
            sentiment.label = SentimentLabel.NEGATIVE
        else:
            sentiment.label = SentimentLabel.NEUTRAL
