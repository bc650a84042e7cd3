"""
Artifact Analyzer (Stage 1).

Extracts structured technical signals from an ArtifactBundle through the LLM
client. The model's JSON is checked by `validate_artifact_signals` before it
is used: structurally missing fields are rejected, never defaulted, and the
only repair applied is clamping skill confidence into [0, 1].
"""

from typing import Any, Optional

from pydantic import ValidationError

from config import logger
from errors import EvaluationParseError
from evaluators.llm_client import LLMClient, build_llm_client
from evaluators.models import (
    ArtifactSignals,
    StructuredResponse,
    ValidationFailure,
    ValidationResult,
    ValidationSuccess,
)
from evaluators.prompts import build_artifact_analysis_prompt
from normalizers.models import ArtifactBundle

REQUIRED_LISTS = ("technical_skills", "code_quality_indicators")
REQUIRED_OBJECTS = ("work_complexity", "communication_quality")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_artifact_signals(payload: Any) -> ValidationResult[ArtifactSignals]:
    """
    Check that a model payload has the ArtifactSignals shape.

    Args:
        payload (Any): Parsed JSON returned by the model

    Returns:
        ValidationResult[ArtifactSignals]: Typed signals, or the reason they were rejected
    """
    if not isinstance(payload, dict) or not payload:
        return ValidationFailure("Model returned empty artifact signals.", payload)

    for field in REQUIRED_LISTS:
        if not isinstance(payload.get(field), list):
            return ValidationFailure(f"Model response missing {field} array.", payload)

    for field in REQUIRED_OBJECTS:
        if not isinstance(payload.get(field), dict):
            return ValidationFailure(f"Model response missing {field} object.", payload)

    if not isinstance(payload.get("overall_summary"), str):
        return ValidationFailure("Model response missing overall_summary string.", payload)

    for skill in payload["technical_skills"]:
        if (
            not isinstance(skill, dict)
            or not skill.get("skill")
            or not skill.get("proficiency_level")
            or not _is_number(skill.get("confidence"))
        ):
            return ValidationFailure(f"Invalid skill entry: {skill!r}", payload)

    try:
        return ValidationSuccess(ArtifactSignals.model_validate(payload))
    except ValidationError as e:
        return ValidationFailure(f"Artifact signals failed validation: {e}", payload)


class ArtifactAnalyzer:
    """Runs Stage 1 of the evaluation: artifact bundle to ArtifactSignals."""

    def __init__(self, llm_client: LLMClient):
        self.llm_client = llm_client

    async def analyze(self, bundle: ArtifactBundle) -> StructuredResponse[ArtifactSignals]:
        """
        Analyze an artifact bundle and extract structured technical signals.

        Args:
            bundle (ArtifactBundle): Normalized repository evidence

        Returns:
            StructuredResponse[ArtifactSignals]: Validated signals and token usage

        Raises:
            EvaluationParseError: If the model output does not have the expected shape
        """
        logger.info("Starting artifact analysis", bundle_id=bundle.id)
        prompt = build_artifact_analysis_prompt(bundle)
        response = await self.llm_client.generate_structured_response(prompt)

        result = validate_artifact_signals(response.data)
        if isinstance(result, ValidationFailure):
            logger.error(
                "Artifact signals rejected", bundle_id=bundle.id, reason=result.reason
            )
            raise EvaluationParseError(result.reason, details={"received": result.payload})

        logger.info(
            "Artifact analysis completed",
            bundle_id=bundle.id,
            skills=len(result.value.technical_skills),
        )
        return StructuredResponse(data=result.value, tokens_used=response.tokens_used)


async def analyze_artifacts(
    bundle: ArtifactBundle, llm_client: Optional[LLMClient] = None
) -> StructuredResponse[ArtifactSignals]:
    """Stage 1 with a client built from global settings when none is given."""
    return await ArtifactAnalyzer(llm_client or build_llm_client()).analyze(bundle)
