"""
Artifact Normalizer Test Suite.

This module contains tests for normalization, covering:
- Trivial commit filtering and message trimming
- Language detection from file extensions
- Description truncation and issue to PR linkage
- Bundle identity and candidate handle resolution
"""

import re
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from miners.models import (
    CommitStats,
    RawArtifactData,
    RawCommit,
    RawFileChange,
    RawIssue,
    RawPullRequest,
    RawRepoInfo,
)
from normalizers.normalizer import (
    find_linked_pr_numbers,
    generate_bundle_id,
    is_trivial_commit,
    languages_from_files,
    normalize_artifacts,
    normalize_commits,
    truncate_text,
)

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def raw_commit(message, login="octocat", name="Octo Cat", **kwargs):
    return RawCommit(
        sha=kwargs.pop("sha", "abc1234"),
        message=message,
        author_name=name,
        author_login=login,
        date=kwargs.pop("date", NOW),
        **kwargs,
    )


@pytest.fixture
def raw_data():
    """Create raw repository data for testing."""
    return RawArtifactData(
        repo_info=RawRepoInfo(
            name="hello-world",
            full_name="octocat/hello-world",
            description=None,
            stargazers_count=10,
            forks_count=2,
        ),
        languages={"Python": 750, "Shell": 250},
        commits=[
            raw_commit(
                "Add parser\n\nLong body explaining the change",
                sha="c1",
                stats=CommitStats(additions=30, deletions=10, total=40),
                files=[
                    RawFileChange(filename="src/parser.py"),
                    RawFileChange(filename="scripts/run.sh"),
                    RawFileChange(filename="Dockerfile"),
                ],
            ),
            raw_commit("Bump lodash", sha="c2", login="dependabot[bot]"),
            raw_commit("Merge pull request #3 from octocat/feature", sha="c3"),
            raw_commit("chore(deps): update pytest", sha="c4"),
            raw_commit("Fix typo", sha="c5", date=NOW - timedelta(days=1)),
        ],
        pull_requests=[
            RawPullRequest(
                number=3,
                title="Feature",
                body="x" * 600,
                author="octocat",
                state="closed",
                merged_at=NOW,
                additions=30,
                deletions=10,
                changed_files=3,
                review_comments=2,
                labels=["feature"],
            ),
            RawPullRequest(number=4, title="Docs", state="open"),
        ],
        issues=[
            RawIssue(
                number=10,
                title="Parser crash",
                body="Fixed in #3, see also #3 and #99. " + "y" * 400,
                state="closed",
            ),
        ],
    )


@pytest.mark.parametrize(
    "commit, trivial",
    [
        (raw_commit("Merge pull request #3 from octocat/feature"), True),
        (raw_commit("merge branch 'main'"), True),
        (raw_commit("Merged results into report"), False),
        (raw_commit("Bump lodash", login="dependabot[bot]"), True),
        (raw_commit("Update deps", login=None, name="renovate-bot"), True),
        (raw_commit("Update deps", login="github-actions[bot]"), True),
        (raw_commit("auto-format sources"), True),
        (raw_commit("chore(deps): bump pytest"), True),
        (raw_commit("chore: tidy imports"), False),
        (raw_commit("Add retry logic"), False),
    ],
)
def test_is_trivial_commit(commit, trivial):
    assert is_trivial_commit(commit) is trivial


def test_normalize_commits_keeps_first_line(raw_data):
    commits = normalize_commits(raw_data.commits)

    assert [c.sha for c in commits] == ["c1", "c5"]
    assert commits[0].message == "Add parser"
    assert commits[0].additions == 30
    assert commits[0].files_changed == 3
    assert commits[0].languages == ("Python", "Shell", "Docker")
    assert commits[1].files_changed == 0
    assert commits[1].languages == ()


def test_languages_from_files():
    files = ["a.ts", "b.tsx", "README.md", "Makefile", "web/App.VUE", "x.unknown"]
    assert languages_from_files(files) == ("TypeScript", "Markdown", "Vue")


def test_truncate_text():
    assert truncate_text("short", 10) == "short"
    assert truncate_text("x" * 10, 10) == "x" * 10
    truncated = truncate_text("x" * 11, 10)
    assert truncated == "xxxxxxx..."
    assert len(truncated) == 10


def test_find_linked_pr_numbers():
    text = "Closes #3, duplicates #3, relates to #99 and #4"
    assert find_linked_pr_numbers(text, {3, 4}) == (3, 4)
    assert find_linked_pr_numbers("no references", {3}) == ()


def test_generate_bundle_id():
    bundle_id = generate_bundle_id("octocat/hello-world", NOW)

    assert re.fullmatch(r"artifact_[0-9a-z]+_[0-9a-z]+", bundle_id)
    assert bundle_id == generate_bundle_id("octocat/hello-world", NOW)
    assert bundle_id != generate_bundle_id("octocat/other", NOW)
    assert bundle_id != generate_bundle_id("octocat/hello-world", NOW + timedelta(seconds=1))


def test_normalize_artifacts(raw_data):
    bundle = normalize_artifacts(raw_data, "https://github.com/octocat/hello-world", now=NOW)

    assert bundle.repo_url == "https://github.com/octocat/hello-world"
    assert bundle.extracted_at == NOW
    assert bundle.candidate_github == "octocat"
    assert bundle.repo_meta.description == ""
    assert bundle.repo_meta.languages == {"Python": 75.0, "Shell": 25.0}
    assert bundle.repo_meta.stars == 10

    assert len(bundle.commits) == 2
    assert len(bundle.pull_requests[0].description) == 500
    assert bundle.pull_requests[0].description.endswith("...")
    assert bundle.pull_requests[1].description == ""

    issue = bundle.issues[0]
    assert len(issue.description) == 300
    assert issue.linked_pr_numbers == (3,)

    assert bundle.activity_signals.active_days == 2
    assert bundle.activity_signals.pr_merge_rate == 0.5


def test_normalize_artifacts_is_deterministic(raw_data):
    first = normalize_artifacts(raw_data, "octocat/hello-world", now=NOW)
    second = normalize_artifacts(raw_data, "octocat/hello-world", now=NOW)
    assert first == second


def test_candidate_override(raw_data):
    bundle = normalize_artifacts(raw_data, "octocat/hello-world", "someone-else", now=NOW)
    assert bundle.candidate_github == "someone-else"


def test_candidate_falls_back_to_owner(raw_data):
    raw = raw_data.model_copy(update={"commits": []})
    bundle = normalize_artifacts(raw, "octocat/hello-world", now=NOW)
    assert bundle.candidate_github == "octocat"
    assert bundle.commits == ()
    assert bundle.activity_signals.commit_frequency == 0.0


def test_bundle_is_frozen(raw_data):
    bundle = normalize_artifacts(raw_data, "octocat/hello-world", now=NOW)
    with pytest.raises(ValidationError):
        bundle.candidate_github = "changed"


def test_bundle_language_percentages_are_read_only(raw_data):
    bundle = normalize_artifacts(raw_data, "octocat/hello-world", now=NOW)

    with pytest.raises(TypeError):
        bundle.repo_meta.languages["Python"] = 99.0
    with pytest.raises(TypeError):
        bundle.activity_signals.language_distribution["Python"] = 99.0

    dumped = bundle.model_dump(mode="json")
    assert dumped["repo_meta"]["languages"] == {"Python": 75.0, "Shell": 25.0}
    assert type(dumped["activity_signals"]["language_distribution"]) is dict
