"""
Candidate Scorer (Stage 2).

Scores a candidate's artifact signals against a job description through the
LLM client, then repairs the model output into an EvaluationResult:
- every ScoreCategory is present exactly once (missing ones default to 50)
- component scores are rounded and clamped to [0, 100]
- the overall score is recomputed from fixed weights; the model's own
  aggregate is discarded
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from config import logger
from errors import EvaluationParseError
from evaluators.llm_client import LLMClient, build_llm_client
from evaluators.models import (
    ArtifactSignals,
    ComponentScore,
    ConfidenceLevel,
    EvaluationResult,
    JobDescription,
    ScoreCategory,
    TokenUsage,
    ValidationFailure,
    ValidationResult,
    ValidationSuccess,
)
from evaluators.prompts import build_scoring_prompt
from normalizers.normalizer import timestamp_token
from rounding import round_half_up

WEIGHTS: Dict[ScoreCategory, float] = {
    ScoreCategory.SKILLS_ALIGNMENT: 0.35,
    ScoreCategory.CODE_QUALITY: 0.25,
    ScoreCategory.EXPERIENCE_RELEVANCE: 0.25,
    ScoreCategory.WORK_STYLE: 0.15,
}

DEFAULT_COMPONENT_SCORE = 50
INSUFFICIENT_DATA_NOTE = "Insufficient data to evaluate this component."
DEFAULT_EXPLANATION = "No explanation provided."
CONFIDENCE_LEVELS = ("high", "medium", "low")


@dataclass(frozen=True)
class ScoringOutcome:
    """Validated Stage 2 fields, before they are attached to a bundle and job."""

    overall_score: int
    component_scores: List[ComponentScore]
    explanation: str
    flagged_concerns: List[str]
    confidence: ConfidenceLevel


def clamp_score(value: Any) -> Optional[int]:
    """Round a model score and clamp it to [0, 100]; None if it is not numeric."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    # clamp first: Decimal cannot quantize infinities or huge exponents
    return int(round_half_up(max(0.0, min(100.0, number))))


def compute_overall_score(component_scores: List[ComponentScore]) -> int:
    """Weighted sum of the component scores, rounded half up."""
    # decimal weights keep .5 ties exact
    total = sum(Decimal(str(WEIGHTS[cs.category])) * cs.score for cs in component_scores)
    return int(round_half_up(total))


def _category(value: Any) -> Optional[ScoreCategory]:
    try:
        return ScoreCategory(value)
    except ValueError:
        return None


def validate_scoring_response(payload: Any) -> ValidationResult[ScoringOutcome]:
    """
    Validate and repair a Stage 2 model payload.

    Args:
        payload (Any): Parsed JSON returned by the model

    Returns:
        ValidationResult[ScoringOutcome]: Repaired scores, or why the payload was rejected
    """
    if not isinstance(payload, dict) or not isinstance(
        payload.get("component_scores"), list
    ):
        return ValidationFailure("Model returned invalid scoring response.", payload)

    reported: Dict[ScoreCategory, ComponentScore] = {}
    for entry in payload["component_scores"]:
        if not isinstance(entry, dict):
            continue
        category = _category(entry.get("category"))
        score = clamp_score(entry.get("score"))
        if category is None or score is None:
            continue
        reasoning = entry.get("reasoning")
        reported[category] = ComponentScore(
            category=category,
            score=score,
            reasoning=reasoning if isinstance(reasoning, str) else "",
        )

    component_scores = [
        reported[category]
        if category in reported
        else ComponentScore(
            category=category,
            score=DEFAULT_COMPONENT_SCORE,
            reasoning=INSUFFICIENT_DATA_NOTE,
        )
        for category in ScoreCategory
    ]

    explanation = payload.get("explanation")
    concerns = payload.get("flagged_concerns")
    confidence = payload.get("confidence")

    return ValidationSuccess(
        ScoringOutcome(
            overall_score=compute_overall_score(component_scores),
            component_scores=component_scores,
            explanation=explanation
            if isinstance(explanation, str) and explanation.strip()
            else DEFAULT_EXPLANATION,
            flagged_concerns=[str(c) for c in concerns]
            if isinstance(concerns, list)
            else [],
            confidence=confidence if confidence in CONFIDENCE_LEVELS else "medium",
        )
    )


def generate_evaluation_id(
    artifact_bundle_id: str, job_id: str, created_at: datetime
) -> str:
    return f"eval_{artifact_bundle_id[-8:]}_{job_id[:8]}_{timestamp_token(created_at)}"


class CandidateScorer:
    """Runs Stage 2 of the evaluation: signals plus job description to a score."""

    def __init__(self, llm_client: LLMClient):
        self.llm_client = llm_client

    async def score(
        self,
        signals: ArtifactSignals,
        job: JobDescription,
        artifact_bundle_id: str,
        prior_usage: Optional[TokenUsage] = None,
    ) -> EvaluationResult:
        """
        Score a candidate against a job description.

        Args:
            signals (ArtifactSignals): Stage 1 output
            job (JobDescription): Job to score against
            artifact_bundle_id (str): Bundle the signals were extracted from
            prior_usage (Optional[TokenUsage]): Tokens already spent on Stage 1

        Returns:
            EvaluationResult: Validated evaluation with a locally computed overall score

        Raises:
            EvaluationParseError: If the model payload is not a scoring response
        """
        logger.info(
            "Starting candidate scoring", bundle_id=artifact_bundle_id, job_id=job.id
        )
        prompt = build_scoring_prompt(signals, job)
        response = await self.llm_client.generate_structured_response(prompt)

        result = validate_scoring_response(response.data)
        if isinstance(result, ValidationFailure):
            logger.error(
                "Scoring response rejected",
                bundle_id=artifact_bundle_id,
                job_id=job.id,
                reason=result.reason,
            )
            raise EvaluationParseError(result.reason, details={"received": result.payload})

        outcome = result.value
        reported_overall = (
            response.data.get("overall_score") if isinstance(response.data, dict) else None
        )
        if reported_overall != outcome.overall_score:
            logger.debug(
                "Discarding model aggregate score",
                reported=reported_overall,
                computed=outcome.overall_score,
            )

        evaluated_at = datetime.now(timezone.utc)
        evaluation = EvaluationResult(
            id=generate_evaluation_id(artifact_bundle_id, job.id, evaluated_at),
            artifact_bundle_id=artifact_bundle_id,
            job_id=job.id,
            overall_score=outcome.overall_score,
            component_scores=outcome.component_scores,
            explanation=outcome.explanation,
            flagged_concerns=outcome.flagged_concerns,
            confidence=outcome.confidence,
            evaluated_at=evaluated_at,
            tokens_used=(prior_usage or TokenUsage()) + response.tokens_used,
        )

        logger.info(
            "Candidate scoring completed",
            evaluation_id=evaluation.id,
            overall_score=evaluation.overall_score,
            confidence=evaluation.confidence,
        )
        return evaluation


async def score_candidate(
    signals: ArtifactSignals,
    job: JobDescription,
    artifact_bundle_id: str,
    llm_client: Optional[LLMClient] = None,
) -> EvaluationResult:
    """Stage 2 with a client built from global settings when none is given."""
    return await CandidateScorer(llm_client or build_llm_client()).score(
        signals, job, artifact_bundle_id
    )
