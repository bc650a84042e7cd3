"""
Shared fixtures for the screener test suite.

Provides a small artifact bundle, a job description and well-formed model
payloads for both evaluation stages, plus a helper that wraps a payload in a
StructuredResponse the way the LLM client returns it.
"""

from datetime import datetime, timezone

import pytest

from evaluators.models import JobDescription, StructuredResponse, TokenUsage
from normalizers.models import (
    ActivitySignals,
    ArtifactBundle,
    NormalizedCommit,
    NormalizedIssue,
    NormalizedPR,
    RepoMeta,
)


@pytest.fixture
def sample_bundle():
    """Create a small artifact bundle for testing."""
    now = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    return ArtifactBundle(
        id="artifact_abc123_lv1x2y3z",
        candidate_github="octocat",
        repo_url="https://github.com/octocat/hello-world",
        extracted_at=now,
        repo_meta=RepoMeta(
            name="hello-world",
            full_name="octocat/hello-world",
            description="Sample project",
            languages={"Python": 80.0, "Shell": 20.0},
            stars=42,
            forks=3,
        ),
        commits=(
            NormalizedCommit(
                sha="a1b2c3d4e5",
                message="Add retry to HTTP client",
                author="octocat",
                date=now,
                additions=40,
                deletions=5,
                files_changed=2,
                languages=("Python",),
            ),
        ),
        pull_requests=(
            NormalizedPR(
                number=7,
                title="Retry HTTP calls",
                description="Adds exponential backoff.",
                author="octocat",
                created_at=now,
                merged_at=now,
                state="closed",
                additions=40,
                deletions=5,
                files_changed=2,
                review_comments=3,
            ),
        ),
        issues=(
            NormalizedIssue(
                number=6,
                title="Flaky network calls",
                description="Fixed by #7",
                author="someone",
                created_at=now,
                state="closed",
                linked_pr_numbers=(7,),
            ),
        ),
        activity_signals=ActivitySignals(
            commit_frequency=1.0,
            avg_pr_size=45,
            avg_commit_size=45,
            pr_merge_rate=1.0,
            review_participation=3.0,
            language_distribution={"Python": 80.0, "Shell": 20.0},
            active_days=1,
        ),
    )


@pytest.fixture
def sample_job():
    """Create a job description for testing."""
    return JobDescription(
        id="job-backend-001",
        title="Backend Engineer",
        company="Acme",
        description="Build resilient services.",
        requirements="Python, HTTP APIs, testing",
        tech_stack=["Python", "PostgreSQL"],
        experience_level="mid",
    )


@pytest.fixture
def signals_payload():
    """Create a well-formed Stage 1 model payload."""
    return {
        "technical_skills": [
            {
                "skill": "Python",
                "proficiency_level": "advanced",
                "evidence": "Retry logic in commit a1b2c3d",
                "confidence": 0.9,
            }
        ],
        "code_quality_indicators": [
            {"aspect": "commit message clarity", "rating": "good", "evidence": "Clear"}
        ],
        "work_complexity": {
            "average_task_complexity": "medium",
            "scope_of_work": "HTTP client resilience",
            "technical_depth": "Moderate",
            "estimated_experience_years": 3,
        },
        "communication_quality": {
            "commit_message_quality": "good",
            "pr_description_quality": "fair",
            "issue_engagement": "moderate",
            "overall_communication": "Concise",
        },
        "overall_summary": "Solid backend contributor.",
    }


@pytest.fixture
def scoring_payload():
    """Create a well-formed Stage 2 model payload."""
    return {
        "overall_score": 99,
        "component_scores": [
            {"category": "skills_alignment", "score": 80, "reasoning": "Strong Python"},
            {"category": "code_quality", "score": 60, "reasoning": "Decent"},
            {"category": "experience_relevance", "score": 70, "reasoning": "Relevant"},
            {"category": "work_style", "score": 90, "reasoning": "Clear PRs"},
        ],
        "explanation": "Good fit overall.",
        "flagged_concerns": ["Limited commit history"],
        "confidence": "high",
    }


@pytest.fixture
def structured_response():
    """Wrap a payload the way the LLM client returns it."""

    def _make(data, prompt=100, completion=50):
        return StructuredResponse(
            data=data,
            tokens_used=TokenUsage(
                prompt=prompt, completion=completion, total=prompt + completion
            ),
        )

    return _make
