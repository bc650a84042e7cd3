"""
Activity Signal Computation.

Derives numeric activity metrics from normalized commits and pull requests.
Computations go through pandas frames the same way the repository metrics
are aggregated elsewhere; every function here is pure.
"""

from typing import Dict, Sequence

import pandas as pd

from normalizers.models import ActivitySignals, NormalizedCommit, NormalizedPR
from rounding import round_half_up

SECONDS_PER_WEEK = 7 * 24 * 60 * 60


def language_percentages(languages: Dict[str, int]) -> Dict[str, float]:
    """
    Convert language byte counts to percentages rounded to one decimal.

    Args:
        languages (Dict[str, int]): Language to bytes

    Returns:
        Dict[str, float]: Language to percentage (0-100)
    """
    total = sum(languages.values())
    return {
        language: round_half_up(byte_count / total * 100, 1) if total > 0 else 0.0
        for language, byte_count in languages.items()
    }


def _commit_frame(commits: Sequence[NormalizedCommit]) -> pd.DataFrame:
    frame = pd.DataFrame(
        [
            {"date": c.date, "size": c.additions + c.deletions}
            for c in commits
        ],
        columns=["date", "size"],
    )
    frame["date"] = pd.to_datetime(frame["date"], utc=True)
    return frame


def commit_frequency(commits: Sequence[NormalizedCommit]) -> float:
    """
    Commits per week between the earliest and latest commit.

    The elapsed window is floored at one week, so short bursts report the raw
    commit count rather than an extrapolated weekly rate.
    """
    if not commits:
        return 0.0
    dates = _commit_frame(commits)["date"].dropna()
    span_weeks = 1.0
    if len(dates) >= 2:
        span_seconds = (dates.max() - dates.min()).total_seconds()
        span_weeks = max(span_seconds / SECONDS_PER_WEEK, 1.0)
    return round_half_up(len(commits) / span_weeks, 1)


def _average_nonzero_size(sizes: pd.Series) -> int:
    nonzero = sizes[sizes > 0]
    if nonzero.empty:
        return 0
    return int(round_half_up(nonzero.mean()))


def compute_activity_signals(
    commits: Sequence[NormalizedCommit],
    pull_requests: Sequence[NormalizedPR],
    languages: Dict[str, int],
) -> ActivitySignals:
    """
    Compute the activity signals of a bundle.

    Args:
        commits (Sequence[NormalizedCommit]): Retained commits
        pull_requests (Sequence[NormalizedPR]): Normalized pull requests
        languages (Dict[str, int]): Repository language byte counts

    Returns:
        ActivitySignals: Derived metrics
    """
    commits_df = _commit_frame(commits)
    prs_df = pd.DataFrame(
        [
            {
                "size": pr.additions + pr.deletions,
                "merged": pr.merged_at is not None,
                "review_comments": pr.review_comments,
            }
            for pr in pull_requests
        ],
        columns=["size", "merged", "review_comments"],
    )

    pr_count = prs_df.shape[0]
    pr_merge_rate = 0.0
    review_participation = 0.0
    if pr_count > 0:
        pr_merge_rate = round_half_up(int(prs_df["merged"].sum()) / pr_count, 2)
        review_participation = round_half_up(
            int(prs_df["review_comments"].sum()) / pr_count, 1
        )

    active_days = int(commits_df["date"].dropna().dt.date.nunique())

    return ActivitySignals(
        commit_frequency=commit_frequency(commits),
        avg_pr_size=_average_nonzero_size(prs_df["size"]),
        avg_commit_size=_average_nonzero_size(commits_df["size"]),
        pr_merge_rate=pr_merge_rate,
        review_participation=review_participation,
        language_distribution=language_percentages(languages),
        active_days=active_days,
    )
