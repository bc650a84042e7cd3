"""
Evaluation Data Models.

Defines the job description input, the Stage 1 artifact signals, the Stage 2
evaluation result and the tagged validation results used to check model
output before it is trusted.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, Field, field_validator, model_validator

T = TypeVar("T")

ConfidenceLevel = Literal["high", "medium", "low"]


class JobDescription(BaseModel):
    """Job posting the candidate is scored against."""

    id: str
    title: str
    company: str
    description: str
    requirements: str
    daily_tasks: Optional[str] = None
    expected_outcomes: Optional[str] = None
    tech_stack: List[str] = Field(default_factory=list)
    experience_level: Optional[str] = None


# ----------------------------------------------------------------------
# Stage 1: artifact signals
# ----------------------------------------------------------------------


class SkillSignal(BaseModel):
    """A technical skill demonstrated in the artifacts."""

    skill: str = Field(min_length=1)
    proficiency_level: str = Field(min_length=1)  # beginner | intermediate | advanced | expert
    evidence: str = ""
    confidence: float

    @field_validator("confidence")
    def clamp_confidence(cls, v: float) -> float:
        return max(0.0, min(1.0, v))


class QualityIndicator(BaseModel):
    aspect: str
    rating: str  # poor | fair | good | excellent
    evidence: str = ""


class ComplexitySignal(BaseModel):
    average_task_complexity: str = "medium"  # low | medium | high
    scope_of_work: str = ""
    technical_depth: str = ""
    estimated_experience_years: Optional[float] = None

    @field_validator("estimated_experience_years", mode="before")
    def parse_years(cls, v: Any) -> Optional[float]:
        try:
            return float(v)
        except (TypeError, ValueError):
            return None


class CommunicationSignal(BaseModel):
    commit_message_quality: str = "fair"  # poor | fair | good | excellent
    pr_description_quality: str = "fair"
    issue_engagement: str = "minimal"  # none | minimal | moderate | active
    overall_communication: str = ""


class ArtifactSignals(BaseModel):
    """Structured signals extracted from an artifact bundle (Stage 1 output)."""

    technical_skills: List[SkillSignal]
    code_quality_indicators: List[QualityIndicator]
    work_complexity: ComplexitySignal
    communication_quality: CommunicationSignal
    overall_summary: str


# ----------------------------------------------------------------------
# Model client responses
# ----------------------------------------------------------------------


class TokenUsage(BaseModel):
    prompt: int = 0
    completion: int = 0
    total: int = 0

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        return TokenUsage(
            prompt=self.prompt + other.prompt,
            completion=self.completion + other.completion,
            total=self.total + other.total,
        )


class StructuredResponse(BaseModel, Generic[T]):
    """Parsed JSON returned by the model plus its token usage."""

    data: T
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)


# ----------------------------------------------------------------------
# Stage 2: scoring
# ----------------------------------------------------------------------


class ScoreCategory(str, Enum):
    """The four fixed components of every evaluation."""

    SKILLS_ALIGNMENT = "skills_alignment"
    CODE_QUALITY = "code_quality"
    EXPERIENCE_RELEVANCE = "experience_relevance"
    WORK_STYLE = "work_style"


class ComponentScore(BaseModel):
    category: ScoreCategory
    score: int = Field(ge=0, le=100)
    reasoning: str = ""


class EvaluationResult(BaseModel):
    """Job-fit evaluation of a candidate (Stage 2 output)."""

    id: str
    artifact_bundle_id: str
    job_id: str
    overall_score: int = Field(ge=0, le=100)
    component_scores: List[ComponentScore]
    explanation: str
    flagged_concerns: List[str] = Field(default_factory=list)
    confidence: ConfidenceLevel = "medium"
    evaluated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)

    @model_validator(mode="after")
    def check_categories(self) -> "EvaluationResult":
        categories = [cs.category for cs in self.component_scores]
        if sorted(categories) != sorted(ScoreCategory):
            raise ValueError("component_scores must contain each category exactly once")
        return self

    def score_for(self, category: ScoreCategory) -> ComponentScore:
        return next(cs for cs in self.component_scores if cs.category == category)


# ----------------------------------------------------------------------
# Validation results
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class ValidationSuccess(Generic[T]):
    """Model output that passed validation, converted to its typed shape."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ValidationFailure:
    """
    Model output that failed validation.

    Attributes:
        reason (str): What was wrong with the payload
        payload (Any): The offending payload, kept for diagnostics
    """

    reason: str
    payload: Any = None

    @property
    def ok(self) -> bool:
        return False


ValidationResult = Union[ValidationSuccess[T], ValidationFailure]
