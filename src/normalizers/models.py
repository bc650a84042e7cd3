"""
Artifact Bundle Data Models.

Canonical, size-bounded evidence produced by the normalizer. A bundle is
frozen once built; every extraction request produces a new one.
"""

from datetime import datetime
from types import MappingProxyType
from typing import Annotated, Dict, Mapping, Optional, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


def _read_only(value: Mapping[str, float]) -> Mapping[str, float]:
    return MappingProxyType(dict(value))


# frozen models do not freeze their dict fields
Percentages = Annotated[
    Mapping[str, float],
    AfterValidator(_read_only),
    PlainSerializer(dict, return_type=Dict[str, float]),
]


def _no_percentages() -> Mapping[str, float]:
    return MappingProxyType({})


class NormalizedCommit(_Frozen):
    """Commit reduced to its first message line and diff size."""

    sha: str
    message: str
    author: str
    date: Optional[datetime] = None
    additions: int = 0
    deletions: int = 0
    files_changed: int = 0
    languages: Tuple[str, ...] = ()


class NormalizedPR(_Frozen):
    """Pull request with its description truncated."""

    number: int
    title: str
    description: str = ""
    author: str
    created_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None
    state: str
    additions: int = 0
    deletions: int = 0
    files_changed: int = 0
    review_comments: int = 0
    labels: Tuple[str, ...] = ()


class NormalizedIssue(_Frozen):
    """Issue with its description truncated and text-linked PR numbers."""

    number: int
    title: str
    description: str = ""
    author: str
    created_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    state: str
    labels: Tuple[str, ...] = ()
    linked_pr_numbers: Tuple[int, ...] = ()


class RepoMeta(_Frozen):
    """Repository metadata with languages expressed as percentages."""

    name: str
    full_name: str
    description: str = ""
    languages: Percentages = Field(default_factory=_no_percentages)
    stars: int = 0
    forks: int = 0
    default_branch: str = "main"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ActivitySignals(_Frozen):
    """
    Derived activity metrics.

    Attributes:
        commit_frequency (float): Commits per week over the commit window
        avg_pr_size (int): Mean additions+deletions over PRs with a nonzero size
        avg_commit_size (int): Mean additions+deletions over commits with a nonzero size
        pr_merge_rate (float): Fraction of PRs merged
        review_participation (float): Mean review comments per PR
        language_distribution (Mapping[str, float]): Language to percentage of repository bytes
        active_days (int): Distinct UTC dates with at least one commit
    """

    commit_frequency: float = 0.0
    avg_pr_size: int = 0
    avg_commit_size: int = 0
    pr_merge_rate: float = 0.0
    review_participation: float = 0.0
    language_distribution: Percentages = Field(default_factory=_no_percentages)
    active_days: int = 0


class ArtifactBundle(_Frozen):
    """Canonical evidence record for one repository extraction."""

    id: str
    candidate_github: str
    repo_url: str
    extracted_at: datetime
    repo_meta: RepoMeta
    commits: Tuple[NormalizedCommit, ...] = ()
    pull_requests: Tuple[NormalizedPR, ...] = ()
    issues: Tuple[NormalizedIssue, ...] = ()
    activity_signals: ActivitySignals = Field(default_factory=ActivitySignals)
