"""
GitHub Client Test Suite.

Exercises the PyGithub wrapper with fake PyGithub objects, covering:
- Conversion of PyGithub objects into raw models
- Pagination caps and pull request filtering of issue listings
- Translation of upstream failures into screener errors
"""

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import Mock

import pytest
from github import (
    BadCredentialsException,
    GithubException,
    RateLimitExceededException,
    UnknownObjectException,
)

from errors import (
    GitHubAPIError,
    GitHubAuthError,
    GitHubRateLimitError,
    RepositoryNotFoundError,
)
from miners.github_client import GitHubClient

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def make_commit(sha, login="octocat", message="Add feature"):
    return SimpleNamespace(
        sha=sha,
        commit=SimpleNamespace(
            message=message,
            author=SimpleNamespace(name="Octo Cat", email="octo@example.com", date=NOW),
        ),
        author=SimpleNamespace(login=login) if login else None,
    )


def make_pull(number, additions=10, deletions=2, changed_files=1, review_comments=0):
    return SimpleNamespace(
        number=number,
        title=f"PR {number}",
        body="Body",
        user=SimpleNamespace(login="octocat"),
        state="closed",
        created_at=NOW,
        merged_at=NOW,
        labels=[SimpleNamespace(name="enhancement")],
        additions=additions,
        deletions=deletions,
        changed_files=changed_files,
        review_comments=review_comments,
    )


def make_issue(number, html_url):
    return SimpleNamespace(
        number=number,
        title=f"Issue {number}",
        body="Something broke",
        user=SimpleNamespace(login="reporter"),
        state="open",
        created_at=NOW,
        closed_at=None,
        labels=[SimpleNamespace(name="bug")],
        html_url=html_url,
    )


@pytest.fixture
def mock_repo():
    """Create a fake PyGithub repository."""
    return Mock()


@pytest.fixture
def mock_github(mock_repo):
    """Create a fake PyGithub entry point returning the fake repository."""
    github = Mock()
    github.get_repo.return_value = mock_repo
    return github


@pytest.fixture
def client(mock_github):
    """Create a GitHubClient over the fake PyGithub instance."""
    return GitHubClient("token", github=mock_github)


@pytest.mark.asyncio
async def test_get_repo_info(client, mock_github):
    mock_github.get_repo.return_value = SimpleNamespace(
        name="hello-world",
        full_name="octocat/hello-world",
        description=None,
        stargazers_count=5,
        forks_count=1,
        default_branch="main",
        created_at=NOW,
        updated_at=NOW,
        language="Python",
    )

    info = await client.get_repo_info("octocat", "hello-world")

    assert info.full_name == "octocat/hello-world"
    assert info.stargazers_count == 5
    assert info.description is None
    mock_github.get_repo.assert_called_with("octocat/hello-world")


@pytest.mark.asyncio
async def test_get_languages(client, mock_repo):
    mock_repo.get_languages.return_value = {"Python": 1000, "Shell": 200}

    languages = await client.get_languages("octocat", "hello-world")

    assert languages == {"Python": 1000, "Shell": 200}


@pytest.mark.asyncio
async def test_get_commits_stops_at_cap(client, mock_repo):
    mock_repo.get_commits.return_value = [make_commit(f"sha{i}") for i in range(10)]

    commits = await client.get_commits("octocat", "hello-world", max_commits=3, since=NOW)

    assert [c.sha for c in commits] == ["sha0", "sha1", "sha2"]
    assert commits[0].author_login == "octocat"
    assert commits[0].author_name == "Octo Cat"
    assert commits[0].stats is None
    mock_repo.get_commits.assert_called_once_with(since=NOW)


@pytest.mark.asyncio
async def test_get_commits_without_linked_account(client, mock_repo):
    mock_repo.get_commits.return_value = [make_commit("sha0", login=None)]

    commits = await client.get_commits("octocat", "hello-world")

    assert commits[0].author_login is None
    mock_repo.get_commits.assert_called_once_with()


@pytest.mark.asyncio
async def test_get_commit_detail(client, mock_repo):
    mock_repo.get_commit.return_value = SimpleNamespace(
        stats=SimpleNamespace(additions=12, deletions=3, total=15),
        files=[
            SimpleNamespace(
                filename="src/app.py",
                status="modified",
                additions=12,
                deletions=3,
                changes=15,
                patch="@@",
            )
        ],
    )

    detail = await client.get_commit_detail("octocat", "hello-world", "sha0")

    assert detail.stats.total == 15
    assert detail.files[0].filename == "src/app.py"
    mock_repo.get_commit.assert_called_once_with("sha0")


@pytest.mark.asyncio
async def test_list_pull_requests_leaves_sizes_at_zero(client, mock_repo):
    mock_repo.get_pulls.return_value = [make_pull(i) for i in range(1, 6)]

    prs = await client.get_pull_requests("octocat", "hello-world", state="all", max_prs=2)

    assert [pr.number for pr in prs] == [1, 2]
    assert prs[0].additions == 0
    assert prs[0].labels == ["enhancement"]
    mock_repo.get_pulls.assert_called_once_with(
        state="all", sort="updated", direction="desc"
    )


@pytest.mark.asyncio
async def test_pull_request_detail_has_sizes(client, mock_repo):
    mock_repo.get_pull.return_value = make_pull(3, additions=100, review_comments=4)

    pr = await client.get_pull_request_detail("octocat", "hello-world", 3)

    assert pr.additions == 100
    assert pr.review_comments == 4
    assert pr.changed_files == 1


@pytest.mark.asyncio
async def test_get_issues_skips_pull_requests(client, mock_repo):
    mock_repo.get_issues.return_value = [
        make_issue(1, "https://github.com/octocat/hello-world/issues/1"),
        make_issue(2, "https://github.com/octocat/hello-world/pull/2"),
        make_issue(3, "https://github.com/octocat/hello-world/issues/3"),
    ]

    issues = await client.get_issues("octocat", "hello-world")

    assert [i.number for i in issues] == [1, 3]
    assert issues[0].labels == ["bug"]


@pytest.mark.asyncio
async def test_list_user_repositories(client, mock_github):
    mock_github.get_user.return_value.get_repos.return_value = [
        SimpleNamespace(
            full_name=f"octocat/repo{i}",
            html_url=f"https://github.com/octocat/repo{i}",
            description=None,
            private=i % 2 == 0,
        )
        for i in range(5)
    ]

    repos = await client.list_user_repositories(max_repos=3)

    assert [r.full_name for r in repos] == ["octocat/repo0", "octocat/repo1", "octocat/repo2"]
    assert repos[0].private is True


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "upstream, expected",
    [
        (BadCredentialsException(401, {"message": "Bad credentials"}, {}), GitHubAuthError),
        (GithubException(403, {"message": "Forbidden"}, {}), GitHubAuthError),
        (UnknownObjectException(404, {"message": "Not Found"}, {}), RepositoryNotFoundError),
        (GithubException(404, {"message": "Not Found"}, {}), RepositoryNotFoundError),
        (
            RateLimitExceededException(403, {"message": "API rate limit exceeded"}, {}),
            GitHubRateLimitError,
        ),
        (
            GithubException(403, {"message": "API rate limit exceeded for user"}, {}),
            GitHubRateLimitError,
        ),
        (GithubException(429, {"message": "Too Many Requests"}, {}), GitHubRateLimitError),
        (GithubException(500, {"message": "Server Error"}, {}), GitHubAPIError),
        (ConnectionError("connection reset"), GitHubAPIError),
    ],
)
async def test_error_mapping(client, mock_repo, upstream, expected):
    mock_repo.get_languages.side_effect = upstream

    with pytest.raises(expected) as exc_info:
        await client.get_languages("octocat", "hello-world")

    assert exc_info.value.__cause__ is upstream
    assert exc_info.value.details is upstream


@pytest.mark.asyncio
async def test_not_found_message_names_repository(client, mock_github):
    mock_github.get_repo.side_effect = UnknownObjectException(404, {"message": "Not Found"}, {})

    with pytest.raises(RepositoryNotFoundError, match="octocat/missing"):
        await client.get_repo_info("octocat", "missing")


def test_close_releases_pool(client, mock_github):
    client.close()
    mock_github.close.assert_called_once_with()
