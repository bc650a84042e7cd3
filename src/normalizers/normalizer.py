"""
Artifact Normalizer.

Transforms raw GitHub data into a canonical ArtifactBundle:
- drops trivial commits (merges, bots, generated dependency chores)
- keeps only the first line of commit messages
- derives the languages touched by each commit from file extensions
- truncates PR and issue descriptions
- links issues to PRs they reference by number
- computes activity signals

Normalization is pure: the same raw data and timestamp always yield the same
bundle.
"""

import hashlib
import os
import re
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from miners.models import RawArtifactData, RawCommit, RawIssue, RawPullRequest
from normalizers.activity import compute_activity_signals, language_percentages
from normalizers.models import (
    ArtifactBundle,
    NormalizedCommit,
    NormalizedIssue,
    NormalizedPR,
    RepoMeta,
)

PR_DESCRIPTION_LIMIT = 500
ISSUE_DESCRIPTION_LIMIT = 300
ELLIPSIS = "..."

BOT_MARKERS = ("[bot]", "dependabot", "renovate")
GENERATED_PREFIXES = ("auto-", "chore(deps")

EXTENSION_LANGUAGES = {
    ".ts": "TypeScript",
    ".tsx": "TypeScript",
    ".js": "JavaScript",
    ".jsx": "JavaScript",
    ".py": "Python",
    ".rs": "Rust",
    ".go": "Go",
    ".java": "Java",
    ".rb": "Ruby",
    ".cpp": "C++",
    ".c": "C",
    ".cs": "C#",
    ".swift": "Swift",
    ".kt": "Kotlin",
    ".sol": "Solidity",
    ".vue": "Vue",
    ".svelte": "Svelte",
    ".php": "PHP",
    ".css": "CSS",
    ".scss": "SCSS",
    ".html": "HTML",
    ".sql": "SQL",
    ".sh": "Shell",
    ".yml": "YAML",
    ".yaml": "YAML",
    ".json": "JSON",
    ".md": "Markdown",
    ".toml": "TOML",
    ".dockerfile": "Docker",
}

_MERGE_MESSAGE = re.compile(r"^merge\b")
_ISSUE_REFERENCE = re.compile(r"#(\d+)")


def truncate_text(text: str, max_length: int) -> str:
    """Truncate text to `max_length` characters, ending with an ellipsis when cut."""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ELLIPSIS)] + ELLIPSIS


def _commit_author(commit: RawCommit) -> str:
    return commit.author_login or commit.author_name


def is_trivial_commit(commit: RawCommit) -> bool:
    """
    Whether a commit carries no evidence about its author.

    Merge commits, bot-authored commits and auto-generated or dependency
    chore commits are trivial.
    """
    message = commit.message.strip().lower()
    if _MERGE_MESSAGE.match(message):
        return True

    author = _commit_author(commit).lower()
    if any(marker in author for marker in BOT_MARKERS):
        return True

    return message.startswith(GENERATED_PREFIXES)


def languages_from_files(filenames: Iterable[str]) -> Tuple[str, ...]:
    """Languages touched by a set of files, in first-seen order."""
    seen: List[str] = []
    for filename in filenames:
        base = os.path.basename(filename).lower()
        ext = ".dockerfile" if base == "dockerfile" else os.path.splitext(base)[1]
        language = EXTENSION_LANGUAGES.get(ext)
        if language and language not in seen:
            seen.append(language)
    return tuple(seen)


def normalize_commits(raw_commits: Sequence[RawCommit]) -> List[NormalizedCommit]:
    commits = []
    for c in raw_commits:
        if is_trivial_commit(c):
            continue
        files = c.files or []
        commits.append(
            NormalizedCommit(
                sha=c.sha,
                message=c.message.split("\n")[0].strip(),
                author=_commit_author(c),
                date=c.date,
                additions=c.stats.additions if c.stats else 0,
                deletions=c.stats.deletions if c.stats else 0,
                files_changed=len(files),
                languages=languages_from_files(f.filename for f in files),
            )
        )
    return commits


def normalize_pull_requests(raw_prs: Sequence[RawPullRequest]) -> List[NormalizedPR]:
    return [
        NormalizedPR(
            number=pr.number,
            title=pr.title,
            description=truncate_text(pr.body or "", PR_DESCRIPTION_LIMIT),
            author=pr.author,
            created_at=pr.created_at,
            merged_at=pr.merged_at,
            state=pr.state,
            additions=pr.additions,
            deletions=pr.deletions,
            files_changed=pr.changed_files,
            review_comments=pr.review_comments,
            labels=tuple(pr.labels),
        )
        for pr in raw_prs
    ]


def find_linked_pr_numbers(text: str, known_prs: Set[int]) -> Tuple[int, ...]:
    """PR numbers referenced as `#<number>` in text that exist among `known_prs`."""
    linked: List[int] = []
    for match in _ISSUE_REFERENCE.finditer(text):
        number = int(match.group(1))
        if number in known_prs and number not in linked:
            linked.append(number)
    return tuple(linked)


def normalize_issues(
    raw_issues: Sequence[RawIssue], pull_requests: Sequence[NormalizedPR]
) -> List[NormalizedIssue]:
    known_prs = {pr.number for pr in pull_requests}
    return [
        NormalizedIssue(
            number=issue.number,
            title=issue.title,
            description=truncate_text(issue.body or "", ISSUE_DESCRIPTION_LIMIT),
            author=issue.author,
            created_at=issue.created_at,
            closed_at=issue.closed_at,
            state=issue.state,
            labels=tuple(issue.labels),
            # links come from the full body, not the truncated description
            linked_pr_numbers=find_linked_pr_numbers(issue.body or "", known_prs),
        )
        for issue in raw_issues
    ]


def normalize_repo_meta(raw: RawArtifactData) -> RepoMeta:
    info = raw.repo_info
    return RepoMeta(
        name=info.name,
        full_name=info.full_name,
        description=info.description or "",
        languages=language_percentages(raw.languages),
        stars=info.stargazers_count,
        forks=info.forks_count,
        default_branch=info.default_branch,
        created_at=info.created_at,
        updated_at=info.updated_at,
    )


def _to_base36(number: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    if number == 0:
        return "0"
    out = []
    while number:
        number, remainder = divmod(number, 36)
        out.append(digits[remainder])
    return "".join(reversed(out))


def timestamp_token(moment: datetime) -> str:
    """Millisecond timestamp in base 36, used as an id suffix."""
    return _to_base36(int(moment.timestamp() * 1000))


def generate_bundle_id(repo_url: str, created_at: datetime) -> str:
    """Identifier built from a digest of the reference and the creation time."""
    digest = int(hashlib.sha1(repo_url.encode("utf-8")).hexdigest()[:12], 16)
    return f"artifact_{_to_base36(digest)}_{timestamp_token(created_at)}"


def extract_github_user(raw: RawArtifactData) -> str:
    """Best guess of the candidate handle: latest commit author, else the owner."""
    if raw.commits:
        return _commit_author(raw.commits[0])
    return raw.repo_info.full_name.split("/")[0]


def normalize_artifacts(
    raw: RawArtifactData,
    repo_url: str,
    candidate_github: Optional[str] = None,
    now: Optional[datetime] = None,
) -> ArtifactBundle:
    """
    Normalize raw GitHub data into an ArtifactBundle.

    Args:
        raw (RawArtifactData): Data returned by the fetcher
        repo_url (str): Reference the data was fetched from
        candidate_github (Optional[str]): Candidate handle override
        now (Optional[datetime]): Extraction timestamp; current UTC time when omitted

    Returns:
        ArtifactBundle: Immutable evidence bundle
    """
    extracted_at = now or datetime.now(timezone.utc)
    commits = normalize_commits(raw.commits)
    pull_requests = normalize_pull_requests(raw.pull_requests)
    issues = normalize_issues(raw.issues, pull_requests)

    return ArtifactBundle(
        id=generate_bundle_id(repo_url, extracted_at),
        candidate_github=candidate_github or extract_github_user(raw),
        repo_url=repo_url,
        extracted_at=extracted_at,
        repo_meta=normalize_repo_meta(raw),
        commits=tuple(commits),
        pull_requests=tuple(pull_requests),
        issues=tuple(issues),
        activity_signals=compute_activity_signals(
            commits, pull_requests, raw.languages
        ),
    )
