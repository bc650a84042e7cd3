"""
GitHub REST API Client.

Typed asynchronous wrapper over PyGithub. PyGithub is blocking, so every
operation (pagination included) runs in a worker thread and the calling
coroutine only suspends at that boundary.

Every upstream failure is translated into the screener error taxonomy:
authentication, not-found, rate-limited or a catch-all API error. Raw
PyGithub or transport exceptions never escape this module; the original
exception is always chained as the cause.
"""

import asyncio
from datetime import datetime
from typing import Callable, Dict, List, Optional, TypeVar

from github import (
    Auth,
    BadCredentialsException,
    Github,
    GithubException,
    RateLimitExceededException,
    UnknownObjectException,
)
from github.Commit import Commit
from github.PullRequest import PullRequest
from github.Repository import Repository

from config import logger
from errors import (
    GitHubAPIError,
    GitHubAuthError,
    GitHubRateLimitError,
    RepositoryNotFoundError,
    ScreenerError,
)
from miners.models import (
    CommitDetail,
    CommitStats,
    RawCommit,
    RawFileChange,
    RawIssue,
    RawPullRequest,
    RawRepoInfo,
    RepositorySummary,
)

T = TypeVar("T")


class GitHubClient:
    """
    Asynchronous GitHub client returning raw Pydantic models.

    The client does not retry; rate limiting is surfaced to the caller as
    GitHubRateLimitError.
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: float = 15.0,
        per_page: int = 100,
        github: Optional[Github] = None,
    ):
        """Initialize the GitHub client.

        Args:
            token (str): Bearer token of the user whose repositories are read.
            base_url (str): GitHub REST API base URL.
            timeout (float): Per-request timeout in seconds.
            per_page (int): Page size used for paginated listings.
            github (Optional[Github]): Pre-built PyGithub instance, mainly for tests.
        """
        self.github = github or Github(
            auth=Auth.Token(token),
            base_url=base_url,
            timeout=timeout,
            per_page=per_page,
            retry=None,
            pool_size=32,
        )

    async def _call(
        self, func: Callable[..., T], *args, owner: str = "", repo: str = ""
    ) -> T:
        """Run a blocking PyGithub call in a thread and map its errors."""
        try:
            return await asyncio.to_thread(func, *args)
        except ScreenerError:
            raise
        except Exception as e:
            raise self._handle_error(e, owner, repo) from e

    def _repo(self, owner: str, repo: str) -> Repository:
        # lazy: no request until a listing or detail call is made
        return self.github.get_repo(f"{owner}/{repo}", lazy=True)

    # ------------------------------------------------------------------
    # Repository metadata
    # ------------------------------------------------------------------

    async def get_repo_info(self, owner: str, repo: str) -> RawRepoInfo:
        """Get repository metadata."""

        def _fetch() -> RawRepoInfo:
            r = self.github.get_repo(f"{owner}/{repo}")
            return RawRepoInfo(
                name=r.name,
                full_name=r.full_name,
                description=r.description,
                stargazers_count=r.stargazers_count,
                forks_count=r.forks_count,
                default_branch=r.default_branch,
                created_at=r.created_at,
                updated_at=r.updated_at,
                language=r.language,
            )

        return await self._call(_fetch, owner=owner, repo=repo)

    async def get_languages(self, owner: str, repo: str) -> Dict[str, int]:
        """Get the repository language breakdown (bytes per language)."""

        def _fetch() -> Dict[str, int]:
            return dict(self._repo(owner, repo).get_languages())

        return await self._call(_fetch, owner=owner, repo=repo)

    # ------------------------------------------------------------------
    # Commits
    # ------------------------------------------------------------------

    @staticmethod
    def _to_raw_commit(commit: Commit) -> RawCommit:
        git_author = commit.commit.author
        return RawCommit(
            sha=commit.sha,
            message=commit.commit.message or "",
            author_name=(git_author.name if git_author else None) or "Unknown",
            author_email=(git_author.email if git_author else None) or "",
            author_login=commit.author.login if commit.author else None,
            date=git_author.date if git_author else None,
        )

    async def get_commits(
        self,
        owner: str,
        repo: str,
        max_commits: int = 50,
        since: Optional[datetime] = None,
    ) -> List[RawCommit]:
        """
        Get commits, newest first, without per-commit stats.

        Args:
            owner (str): Repository owner
            repo (str): Repository name
            max_commits (int): Stop paginating once this many commits are collected
            since (Optional[datetime]): Only commits after this instant

        Returns:
            List[RawCommit]: At most `max_commits` commits
        """

        def _fetch() -> List[RawCommit]:
            kwargs = {"since": since} if since else {}
            commits: List[RawCommit] = []
            if max_commits <= 0:
                return commits
            for commit in self._repo(owner, repo).get_commits(**kwargs):
                commits.append(self._to_raw_commit(commit))
                if len(commits) >= max_commits:
                    break
            return commits

        return await self._call(_fetch, owner=owner, repo=repo)

    async def get_commit_detail(self, owner: str, repo: str, sha: str) -> CommitDetail:
        """Get diff statistics and changed files for a single commit."""

        def _fetch() -> CommitDetail:
            commit = self._repo(owner, repo).get_commit(sha)
            stats = commit.stats
            return CommitDetail(
                stats=CommitStats(
                    additions=(stats.additions if stats else 0) or 0,
                    deletions=(stats.deletions if stats else 0) or 0,
                    total=(stats.total if stats else 0) or 0,
                ),
                files=[
                    RawFileChange(
                        filename=f.filename,
                        status=f.status or "modified",
                        additions=f.additions or 0,
                        deletions=f.deletions or 0,
                        changes=f.changes or 0,
                        patch=f.patch,
                    )
                    for f in (commit.files or [])
                ],
            )

        return await self._call(_fetch, owner=owner, repo=repo)

    # ------------------------------------------------------------------
    # Pull requests
    # ------------------------------------------------------------------

    @staticmethod
    def _to_raw_pull_request(pr: PullRequest, detailed: bool = False) -> RawPullRequest:
        data = RawPullRequest(
            number=pr.number,
            title=pr.title or "",
            body=pr.body,
            author=pr.user.login if pr.user else "Unknown",
            state=pr.state,
            created_at=pr.created_at,
            merged_at=pr.merged_at,
            labels=[label.name for label in pr.labels],
        )
        if detailed:
            # size fields are absent from list payloads
            data.additions = pr.additions or 0
            data.deletions = pr.deletions or 0
            data.changed_files = pr.changed_files or 0
            data.review_comments = pr.review_comments or 0
        return data

    async def get_pull_requests(
        self, owner: str, repo: str, state: str = "closed", max_prs: int = 30
    ) -> List[RawPullRequest]:
        """
        Get pull requests, most recently updated first.

        Args:
            owner (str): Repository owner
            repo (str): Repository name
            state (str): "open", "closed" or "all"
            max_prs (int): Stop paginating once this many PRs are collected

        Returns:
            List[RawPullRequest]: PRs with size fields left at zero
        """

        def _fetch() -> List[RawPullRequest]:
            prs: List[RawPullRequest] = []
            if max_prs <= 0:
                return prs
            pulls = self._repo(owner, repo).get_pulls(
                state=state, sort="updated", direction="desc"
            )
            for pr in pulls:
                prs.append(self._to_raw_pull_request(pr))
                if len(prs) >= max_prs:
                    break
            return prs

        return await self._call(_fetch, owner=owner, repo=repo)

    async def get_pull_request_detail(
        self, owner: str, repo: str, number: int
    ) -> RawPullRequest:
        """Get a single PR including additions, deletions and review comment count."""

        def _fetch() -> RawPullRequest:
            pr = self._repo(owner, repo).get_pull(number)
            return self._to_raw_pull_request(pr, detailed=True)

        return await self._call(_fetch, owner=owner, repo=repo)

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    async def get_issues(
        self, owner: str, repo: str, state: str = "closed", max_issues: int = 30
    ) -> List[RawIssue]:
        """
        Get issues, most recently updated first, excluding pull requests.

        GitHub lists pull requests as issues too; they are recognised by their
        html_url so no extra request per item is needed.
        """

        def _fetch() -> List[RawIssue]:
            issues: List[RawIssue] = []
            if max_issues <= 0:
                return issues
            listing = self._repo(owner, repo).get_issues(
                state=state, sort="updated", direction="desc"
            )
            for issue in listing:
                if "/pull/" in (issue.html_url or ""):
                    continue
                issues.append(
                    RawIssue(
                        number=issue.number,
                        title=issue.title or "",
                        body=issue.body,
                        author=issue.user.login if issue.user else "Unknown",
                        state=issue.state,
                        created_at=issue.created_at,
                        closed_at=issue.closed_at,
                        labels=[label.name for label in issue.labels],
                    )
                )
                if len(issues) >= max_issues:
                    break
            return issues

        return await self._call(_fetch, owner=owner, repo=repo)

    # ------------------------------------------------------------------
    # Authenticated user
    # ------------------------------------------------------------------

    async def list_user_repositories(self, max_repos: int = 100) -> List[RepositorySummary]:
        """List the authenticated user's repositories, most recently updated first."""

        def _fetch() -> List[RepositorySummary]:
            repos: List[RepositorySummary] = []
            for r in self.github.get_user().get_repos(type="all", sort="updated"):
                repos.append(
                    RepositorySummary(
                        full_name=r.full_name,
                        html_url=r.html_url,
                        description=r.description,
                        private=bool(r.private),
                    )
                )
                if len(repos) >= max_repos:
                    break
            return repos

        return await self._call(_fetch, owner="", repo="")

    def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        self.github.close()

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    def _handle_error(self, error: Exception, owner: str, repo: str) -> ScreenerError:
        """Translate a PyGithub or transport exception into a ScreenerError."""
        target = f"{owner}/{repo}" if owner else "the authenticated user"
        status = error.status if isinstance(error, GithubException) else None
        message = str(error)

        if isinstance(error, RateLimitExceededException) or status == 429 or (
            status == 403 and "rate limit" in message.lower()
        ):
            mapped: ScreenerError = GitHubRateLimitError(
                "GitHub API rate limit exceeded.", details=error
            )
        elif isinstance(error, BadCredentialsException) or status in (401, 403):
            mapped = GitHubAuthError(
                f"GitHub authentication failed for {target}. Check your token.",
                details=error,
            )
        elif isinstance(error, UnknownObjectException) or status == 404:
            mapped = RepositoryNotFoundError(
                f"Repository {target} not found or not accessible.", details=error
            )
        else:
            mapped = GitHubAPIError(f"GitHub API error: {message}", details=error)

        logger.warning(
            "GitHub request failed",
            repository=target,
            status=status,
            code=mapped.code.value,
            error=message,
        )
        return mapped
