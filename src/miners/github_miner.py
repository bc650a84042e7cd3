"""
GitHub Repository Data Fetching Module.

This module orchestrates all GitHub API calls needed to screen one repository.
Independent calls are issued concurrently, and a capped subset of commits and
pull requests is enriched with per-item detail calls. A failed detail call
degrades to the item's base record instead of failing the whole fetch; the
outcome of every enrichment is recorded so callers can observe it.
"""

import asyncio
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Generic, List, Optional, TypeVar
from urllib.parse import urlparse

from config import Settings, logger
from config import settings as default_settings
from errors import InvalidRepoURLError
from miners.base import RepositoryMiner
from miners.github_client import GitHubClient
from miners.models import (
    EnrichmentSummary,
    ExtractOptions,
    RawArtifactData,
    RawCommit,
    RawPullRequest,
    RepositoryReference,
)

T = TypeVar("T")

COMMIT_ENRICHMENT_LIMIT = 20
PR_ENRICHMENT_LIMIT = 15
LISTING_LIMIT = 30

_SEGMENT = re.compile(r"^[A-Za-z0-9_.-]+$")


@dataclass(frozen=True)
class EnrichmentResult(Generic[T]):
    """
    Outcome of a single per-item detail call.

    Attributes:
        item (T): Enriched item, or the untouched base record on failure
        enriched (bool): Whether the detail call succeeded
        error (Optional[str]): Failure description when not enriched
    """

    item: T
    enriched: bool
    error: Optional[str] = None


def parse_repository_reference(reference: str) -> RepositoryReference:
    """
    Parse a repository reference into owner and name.

    Accepted forms:
        - https://github.com/owner/repo
        - https://github.com/owner/repo.git
        - github.com/owner/repo
        - either github.com form followed by extra path segments (/tree/main)
        - owner/repo

    Args:
        reference (str): Repository reference supplied by the caller

    Returns:
        RepositoryReference: Parsed owner and repository name

    Raises:
        InvalidRepoURLError: If the reference has any other shape
    """
    invalid = InvalidRepoURLError(f"Invalid GitHub repository URL: {reference}")
    if not isinstance(reference, str):
        raise invalid

    cleaned = reference.strip().rstrip("/")
    if cleaned.endswith(".git"):
        cleaned = cleaned[: -len(".git")].rstrip("/")

    if cleaned.startswith(("http://", "https://")):
        parsed = urlparse(cleaned)
        parts = [p for p in parsed.path.split("/") if p]
        if not parsed.netloc or len(parts) < 2:
            raise invalid
    else:
        parts = [p for p in cleaned.split("/") if p]
        if parts and "." in parts[0]:
            # schemeless host/owner/repo[/...]; owners never contain dots
            if len(parts) < 3:
                raise invalid
            parts = parts[1:3]
        elif len(parts) != 2:
            raise invalid

    owner, repo = parts[0], parts[1]
    if not (_SEGMENT.match(owner) and _SEGMENT.match(repo)):
        raise invalid
    return RepositoryReference(owner=owner, repo=repo)


class GitHubMiner(RepositoryMiner):
    """
    GitHubMiner fetches the raw evidence for one repository.

    Metadata, languages and commits are fetched together; pull requests and
    issues follow, then the most recent commits and PRs are enriched.
    """

    def __init__(
        self,
        client: GitHubClient,
        commit_enrichment_limit: int = COMMIT_ENRICHMENT_LIMIT,
        pr_enrichment_limit: int = PR_ENRICHMENT_LIMIT,
        listing_limit: int = LISTING_LIMIT,
    ):
        """Initialize the miner.

        Args:
            client (GitHubClient): Authenticated repository client.
            commit_enrichment_limit (int): Number of most recent commits enriched with detail.
            pr_enrichment_limit (int): Number of most recent PRs enriched with detail.
            listing_limit (int): Maximum PRs and issues listed.
        """
        self.client = client
        self.commit_enrichment_limit = commit_enrichment_limit
        self.pr_enrichment_limit = pr_enrichment_limit
        self.listing_limit = listing_limit

    async def _enrich_commit(
        self, ref: RepositoryReference, commit: RawCommit
    ) -> EnrichmentResult[RawCommit]:
        try:
            detail = await self.client.get_commit_detail(ref.owner, ref.repo, commit.sha)
        except Exception as e:
            logger.warning(
                "Commit enrichment failed, keeping base record",
                repository=ref.full_name,
                sha=commit.sha,
                error=str(e),
            )
            return EnrichmentResult(item=commit, enriched=False, error=str(e))
        return EnrichmentResult(
            item=commit.model_copy(update={"stats": detail.stats, "files": detail.files}),
            enriched=True,
        )

    async def _enrich_pull_request(
        self, ref: RepositoryReference, pr: RawPullRequest
    ) -> EnrichmentResult[RawPullRequest]:
        try:
            detail = await self.client.get_pull_request_detail(
                ref.owner, ref.repo, pr.number
            )
        except Exception as e:
            logger.warning(
                "Pull request enrichment failed, keeping base record",
                repository=ref.full_name,
                pr_number=pr.number,
                error=str(e),
            )
            return EnrichmentResult(item=pr, enriched=False, error=str(e))
        return EnrichmentResult(item=detail, enriched=True)

    @staticmethod
    async def _nothing() -> list:
        return []

    async def fetch_artifacts(
        self, repo_reference: str, options: Optional[ExtractOptions] = None
    ) -> RawArtifactData:
        """
        Fetch and enrich all raw data for a repository.

        Args:
            repo_reference (str): Repository URL or owner/name reference
            options (Optional[ExtractOptions]): Extraction limits and toggles

        Returns:
            RawArtifactData: Raw data with enriched items first, in their original order

        Raises:
            InvalidRepoURLError: If the reference cannot be parsed
            ScreenerError: If any listing call fails
        """
        options = options or ExtractOptions()
        ref = parse_repository_reference(repo_reference)
        since = datetime.now(timezone.utc) - timedelta(days=options.since_days)

        logger.info(
            "Starting repository fetch",
            repository=ref.full_name,
            since=since.isoformat(),
            max_commits=options.max_commits,
        )

        try:
            repo_info, languages, commits = await asyncio.gather(
                self.client.get_repo_info(ref.owner, ref.repo),
                self.client.get_languages(ref.owner, ref.repo),
                self.client.get_commits(
                    ref.owner, ref.repo, max_commits=options.max_commits, since=since
                ),
            )

            prs_call: Awaitable[List[RawPullRequest]] = (
                self.client.get_pull_requests(
                    ref.owner, ref.repo, state="all", max_prs=self.listing_limit
                )
                if options.include_prs
                else self._nothing()
            )
            issues_call = (
                self.client.get_issues(
                    ref.owner, ref.repo, state="all", max_issues=self.listing_limit
                )
                if options.include_issues
                else self._nothing()
            )
            pull_requests, issues = await asyncio.gather(prs_call, issues_call)
        except Exception as e:
            logger.error(
                "Repository fetch failed", repository=ref.full_name, error=str(e)
            )
            raise

        pr_results, commit_results = await asyncio.gather(
            asyncio.gather(
                *(
                    self._enrich_pull_request(ref, pr)
                    for pr in pull_requests[: self.pr_enrichment_limit]
                )
            ),
            asyncio.gather(
                *(
                    self._enrich_commit(ref, commit)
                    for commit in commits[: self.commit_enrichment_limit]
                )
            ),
        )

        enrichment = EnrichmentSummary(
            commits_enriched=sum(1 for r in commit_results if r.enriched),
            commits_failed=sum(1 for r in commit_results if not r.enriched),
            prs_enriched=sum(1 for r in pr_results if r.enriched),
            prs_failed=sum(1 for r in pr_results if not r.enriched),
        )

        logger.info(
            "Repository fetch completed",
            repository=ref.full_name,
            commits=len(commits),
            pull_requests=len(pull_requests),
            issues=len(issues),
            **enrichment.model_dump(),
        )

        return RawArtifactData(
            repo_info=repo_info,
            languages=languages,
            commits=[r.item for r in commit_results]
            + commits[self.commit_enrichment_limit :],
            pull_requests=[r.item for r in pr_results]
            + pull_requests[self.pr_enrichment_limit :],
            issues=issues,
            enrichment=enrichment,
        )


def build_github_client(token: str, settings: Optional[Settings] = None) -> GitHubClient:
    """Create a GitHubClient from a token and explicit configuration."""
    settings = settings or default_settings
    return GitHubClient(
        token,
        base_url=settings.github_base_url,
        timeout=settings.github_timeout_seconds,
        per_page=settings.github_per_page,
    )


async def fetch_repo_artifacts(
    token: str,
    repo_reference: str,
    options: Optional[ExtractOptions] = None,
    settings: Optional[Settings] = None,
) -> RawArtifactData:
    """
    Fetch all raw artifact data for a repository with a fresh client.

    Args:
        token (str): GitHub bearer token
        repo_reference (str): Repository URL or owner/name reference
        options (Optional[ExtractOptions]): Extraction limits and toggles
        settings (Optional[Settings]): Configuration; global settings when omitted

    Returns:
        RawArtifactData: Raw repository data
    """
    # validate before building a client
    parse_repository_reference(repo_reference)
    client = build_github_client(token, settings)
    try:
        return await GitHubMiner(client).fetch_artifacts(repo_reference, options)
    finally:
        client.close()
