"""
Pattern Tagger
게시물 태그 분류 (gold / red / gray / neutral)

우선순위 (첫 번째 일치):
1. gold: 클러스터 성과 차이 >= +t, 감정이 부정이 아님
2. red: 클러스터 성과 차이 <= -t, 감정이 부정이거나 KPI가 클러스터 하위 10%
3. gray: 성과 차이가 유의하지만 감정이 반대 방향
4. neutral: 그 외
"""

from dataclasses import dataclass
from typing import List, Optional
from enum import Enum
import math

from pattern_learning.analysis.sentiment import SentimentLabel


class PatternTag(str, Enum):
    """패턴 태그"""
    GOLD = "gold"
    GRAY = "gray"
    RED = "red"
    NEUTRAL = "neutral"


@dataclass
class TaggerConfig:
    """태거 설정"""
    threshold: float = 0.10
    bottom_decile: float = 0.10


def percentile(values: List[float], fraction: float) -> float:
    """선형 보간 백분위수"""
    if not values:
        return 0.0
    ordered = sorted(values)
    if len(ordered) == 1:
        return ordered[0]
    position = (len(ordered) - 1) * fraction
    lower = math.floor(position)
    upper = math.ceil(position)
    if lower == upper:
        return ordered[lower]
    return ordered[lower] + (ordered[upper] - ordered[lower]) * (position - lower)


def assign_tag(
    cluster_performance_diff: float,
    sentiment: SentimentLabel,
    bottom_decile: bool,
    threshold: float = 0.10,
) -> PatternTag:
    """태그 결정 (순수 함수)"""
    high = cluster_performance_diff >= threshold
    low = cluster_performance_diff <= -threshold

    if high and sentiment != SentimentLabel.NEGATIVE:
        return PatternTag.GOLD
    if low and (sentiment == SentimentLabel.NEGATIVE or bottom_decile):
        return PatternTag.RED
    if high and sentiment == SentimentLabel.NEGATIVE:
        return PatternTag.GRAY
    if low and sentiment == SentimentLabel.POSITIVE:
        return PatternTag.GRAY
    return PatternTag.NEUTRAL


class PatternTagger:
    """패턴 태거"""

    def __init__(self, config: Optional[TaggerConfig] = None):
        self.config = config or TaggerConfig()

    def is_bottom_decile(self, kpi_score: float, cluster_kpis: List[float]) -> bool:
        """클러스터 KPI 분포의 하위 10% 여부 (멤버 2개 이상일 때만)"""
        if len(cluster_kpis) < 2:
            return False
        return kpi_score <= percentile(cluster_kpis, self.config.bottom_decile)

    def tag(
        self,
        cluster_performance_diff: float,
        sentiment: SentimentLabel,
        kpi_score: float,
        cluster_kpis: List[float],
    ) -> PatternTag:
        return assign_tag(
            cluster_performance_diff,
            sentiment,
            self.is_bottom_decile(kpi_score, cluster_kpis),
            self.config.threshold,
        )
