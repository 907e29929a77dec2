"""
Pattern Summarizer
태그별 패턴 요약 + 게시물 인사이트

텍스트 생성 협력자(LLM)는 제한 시간 안에서만 호출한다.
- 태그 요약: 실패/타임아웃/파싱 오류 시 데이터 기반 폴백 요약
- 게시물 인사이트: 실패 시 생략
"""

from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional
import json
import logging

from pattern_learning.analysis.signal import PatternSignal
from pattern_learning.analysis.tagger import PatternTag
from pattern_learning.core.exceptions import CollaboratorTimeoutError
from pattern_learning.interfaces.stores import TextGenerator
from pattern_learning.learning.statistics import collect_top_hashtags

logger = logging.getLogger(__name__)

SUMMARIZED_TAGS = (PatternTag.GOLD, PatternTag.GRAY, PatternTag.RED)

TAG_LABELS = {
    PatternTag.GOLD: "winning pattern",
    PatternTag.GRAY: "pattern people liked but metrics did not follow",
    PatternTag.RED: "pattern that needs improvement",
    PatternTag.NEUTRAL: "reference pattern",
}

DEFAULT_CAUTIONS = {
    PatternTag.RED: ["Make the call to action clearer", "Rework the post structure", "Re-check the hashtags"],
    PatternTag.GRAY: ["Pair the content with a KPI improvement", "Adjust the posting time", "Review the visuals"],
}

DEFAULT_ANGLES = {
    PatternTag.GOLD: ["Reuse the winning pattern", "Template the structure and tone", "Strengthen the call to action"],
    PatternTag.GRAY: ["Keep what people liked and test a KPI lever", "Add an engagement path"],
}

SUMMARY_SYSTEM_PROMPT = (
    "You analyze social media post performance. "
    "Reply with a single JSON object and nothing else."
)

SUMMARY_PROMPT_TEMPLATE = """Below are Instagram posts classified as a {label}.
Describe what they share, what to reuse and what to watch out for.

Posts:
{posts}

Reply only with this JSON:
{{
  "summary": "overview in under 120 characters",
  "keyThemes": ["shared trait or hashtag"],
  "cautions": ["point to improve or watch"],
  "suggestedAngles": ["angle to use next time"]
}}"""

INSIGHT_PROMPT_TEMPLATE = """Review this Instagram post against its peer cluster.

Post:
{post}

Reply only with this JSON:
{{
  "summary": "one sentence",
  "strengths": ["..."],
  "improvements": ["..."],
  "nextActions": ["..."]
}}"""


@dataclass
class PatternSummary:
    """태그별 패턴 요약"""
    tag: PatternTag
    summary: str
    key_themes: List[str] = field(default_factory=list)
    cautions: List[str] = field(default_factory=list)
    suggested_angles: List[str] = field(default_factory=list)
    generated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'tag': self.tag.value,
            'summary': self.summary,
            'key_themes': self.key_themes,
            'cautions': self.cautions,
            'suggested_angles': self.suggested_angles,
            'generated': self.generated,
        }


@dataclass
class PostInsight:
    """게시물 인사이트"""
    post_id: str
    summary: str
    strengths: List[str] = field(default_factory=list)
    improvements: List[str] = field(default_factory=list)
    next_actions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'post_id': self.post_id,
            'summary': self.summary,
            'strengths': self.strengths,
            'improvements': self.improvements,
            'next_actions': self.next_actions,
        }


def build_fallback_summary(tag: PatternTag, signals: List[PatternSignal]) -> PatternSummary:
    """LLM 없이 개수와 해시태그만으로 요약"""
    hashtags = list(collect_top_hashtags(signals))

    summary = f"Found {len(signals)} post(s) matching the {TAG_LABELS[tag]}."
    if hashtags:
        summary += f" Frequent hashtags: {', '.join(hashtags[:3])}."

    return PatternSummary(
        tag=tag,
        summary=summary,
        key_themes=hashtags[:5],
        cautions=list(DEFAULT_CAUTIONS.get(tag, [])),
        suggested_angles=list(DEFAULT_ANGLES.get(tag, ["Re-check that the content fits the target audience"])),
        generated=False,
    )


def extract_json(text: str) -> Dict[str, Any]:
    """응답 텍스트에서 JSON 객체 추출"""
    start = text.find("{")
    end = text.rfind("}")
    if start < 0 or end <= start:
        raise ValueError("no JSON object in response")

    parsed = json.loads(text[start:end + 1])
    if not isinstance(parsed, dict):
        raise ValueError("response JSON is not an object")
    return parsed


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _signal_sample(signal: PatternSignal) -> Dict[str, Any]:
    return {
        'title': signal.title,
        'category': signal.category,
        'engagementRate': round(signal.engagement_rate, 4),
        'reach': signal.reach,
        'clusterPerformanceDiff': signal.comparisons.cluster_performance_diff,
        'sentimentLabel': signal.sentiment.label.value,
        'sentimentScore': round(signal.sentiment.score, 3),
        'hashtags': signal.hashtags,
    }


class PatternSummarizer:
    """
    패턴 요약기

    generator가 None이면 LLM을 호출하지 않는다.
    (태그 요약은 폴백, 게시물 인사이트는 빈 결과)
    """

    def __init__(
        self,
        generator: Optional[TextGenerator] = None,
        timeout_seconds: float = 8.0,
        signals_per_tag: int = 12,
        insight_limit: int = 3,
        max_workers: int = 4,
    ):
        self.generator = generator
        self.timeout_seconds = timeout_seconds
        self.signals_per_tag = signals_per_tag
        self.insight_limit = insight_limit
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="summarizer")

    @property
    def enabled(self) -> bool:
        return self.generator is not None

    def summarize(self, signals: List[PatternSignal]) -> Dict[str, PatternSummary]:
        """
        gold / gray / red 요약

        Args:
            signals: 정렬된 패턴 신호

        Returns:
            태그 값 → PatternSummary (신호가 없는 태그는 제외)
        """
        summaries = {}
        for tag in SUMMARIZED_TAGS:
            tagged = [signal for signal in signals if signal.tag == tag][:self.signals_per_tag]
            if not tagged:
                continue
            summaries[tag.value] = self.summarize_tag(tag, tagged)
        return summaries

    def summarize_tag(self, tag: PatternTag, signals: List[PatternSignal]) -> PatternSummary:
        if not self.enabled:
            return build_fallback_summary(tag, signals)

        prompt = SUMMARY_PROMPT_TEMPLATE.format(
            label=TAG_LABELS[tag],
            posts=json.dumps([_signal_sample(signal) for signal in signals[:5]], ensure_ascii=False, indent=2),
        )

        try:
            parsed = extract_json(self._generate(prompt))
        except (CollaboratorTimeoutError, ValueError) as e:
            logger.warning(f"[PatternSummarizer] {tag.value} summary fallback: {e}")
            return build_fallback_summary(tag, signals)

        return PatternSummary(
            tag=tag,
            summary=parsed.get('summary') if isinstance(parsed.get('summary'), str) else "",
            key_themes=_string_list(parsed.get('keyThemes')),
            cautions=_string_list(parsed.get('cautions')),
            suggested_angles=_string_list(parsed.get('suggestedAngles')),
            generated=True,
        )

    def post_insights(self, signals: List[PatternSignal]) -> Dict[str, PostInsight]:
        """상위 N개 신호의 게시물 인사이트 (실패한 게시물은 생략)"""
        if not self.enabled:
            return {}

        insights = {}
        for signal in signals[:self.insight_limit]:
            prompt = INSIGHT_PROMPT_TEMPLATE.format(
                post=json.dumps(signal.to_dict(), ensure_ascii=False, default=str),
            )
            try:
                parsed = extract_json(self._generate(prompt))
            except (CollaboratorTimeoutError, ValueError) as e:
                logger.info(f"[PatternSummarizer] insight omitted for {signal.post_id}: {e}")
                continue

            insights[signal.post_id] = PostInsight(
                post_id=signal.post_id,
                summary=parsed.get('summary') if isinstance(parsed.get('summary'), str) else "",
                strengths=_string_list(parsed.get('strengths')),
                improvements=_string_list(parsed.get('improvements')),
                next_actions=_string_list(parsed.get('nextActions')),
            )
        return insights

    def _generate(self, prompt: str) -> str:
        """제한 시간 내 텍스트 생성"""
        try:
            future = self._executor.submit(self.generator.invoke, prompt, SUMMARY_SYSTEM_PROMPT)
            return future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError:
            future.cancel()
            raise CollaboratorTimeoutError(
                f"Text generation exceeded {self.timeout_seconds}s",
                details={'timeout_seconds': self.timeout_seconds},
            )
        except Exception as e:
            raise CollaboratorTimeoutError(
                f"Text generation failed: {e}",
                details={'error': type(e).__name__},
            ) from e

    def shutdown(self):
        """스레드풀 종료 (대기 중인 호출 취소, 실행 중인 호출은 기다리지 않음)"""
        self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info("[PatternSummarizer] executor shut down")
