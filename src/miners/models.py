"""
Repository Mining Data Models.

Defines the raw data models produced by the repository fetcher. They mirror the
upstream GitHub API shapes closely and only live for the duration of a single
fetch; the normalizer turns them into the canonical artifact bundle.
Uses Pydantic for validation and serialization.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class RepositoryReference(BaseModel):
    """Owner/name pair identifying a repository."""

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


class RawRepoInfo(BaseModel):
    """Raw repository metadata."""

    name: str
    full_name: str
    description: Optional[str] = None
    stargazers_count: int = 0
    forks_count: int = 0
    default_branch: str = "main"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    language: Optional[str] = None


class RawFileChange(BaseModel):
    """A single file touched by a commit."""

    filename: str
    status: str = "modified"
    additions: int = 0
    deletions: int = 0
    changes: int = 0
    patch: Optional[str] = None


class CommitStats(BaseModel):
    additions: int = 0
    deletions: int = 0
    total: int = 0


class CommitDetail(BaseModel):
    """Diff statistics and changed files of one commit."""

    stats: CommitStats
    files: List[RawFileChange]


class RawCommit(BaseModel):
    """Raw commit data; `stats` and `files` are only set once enriched."""

    sha: str
    message: str
    author_name: str = "Unknown"
    author_email: str = ""
    author_login: Optional[str] = None
    date: Optional[datetime] = None
    stats: Optional[CommitStats] = None
    files: Optional[List[RawFileChange]] = None


class RawPullRequest(BaseModel):
    """Raw pull request data; size fields stay at zero until enriched."""

    number: int
    title: str
    body: Optional[str] = None
    author: str = "Unknown"
    state: str
    created_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    review_comments: int = 0
    labels: List[str] = Field(default_factory=list)


class RawIssue(BaseModel):
    """Raw issue data (pull requests excluded)."""

    number: int
    title: str
    body: Optional[str] = None
    author: str = "Unknown"
    state: str
    created_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None
    labels: List[str] = Field(default_factory=list)


class RepositorySummary(BaseModel):
    """Entry of the authenticated user's repository list."""

    full_name: str
    html_url: str
    description: Optional[str] = None
    private: bool = False


class EnrichmentSummary(BaseModel):
    """Counts of per-item detail calls that succeeded or degraded."""

    commits_enriched: int = 0
    commits_failed: int = 0
    prs_enriched: int = 0
    prs_failed: int = 0

    @property
    def total_failed(self) -> int:
        return self.commits_failed + self.prs_failed


class RawArtifactData(BaseModel):
    """Container for everything fetched from one repository."""

    repo_info: RawRepoInfo
    languages: Dict[str, int]
    commits: List[RawCommit]
    pull_requests: List[RawPullRequest]
    issues: List[RawIssue]
    enrichment: EnrichmentSummary = Field(default_factory=EnrichmentSummary)
    collection_date: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class ExtractOptions(BaseModel):
    """Caller options for an extraction request."""

    max_commits: int = Field(default=50, ge=1)
    since_days: int = Field(default=90, ge=1)
    include_issues: bool = True
    include_prs: bool = True
    candidate_github: Optional[str] = None
