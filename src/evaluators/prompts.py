"""
Prompt Templates for the Two-Stage Evaluation.

Stage 1 turns an artifact bundle into structured signals; Stage 2 scores those
signals against a job description. Only a bounded sample of the bundle is
rendered so prompt size stays flat regardless of repository activity.
"""

import json
from typing import List

from evaluators.models import ArtifactSignals, JobDescription
from normalizers.models import ArtifactBundle

PROMPT_COMMIT_LIMIT = 15
PROMPT_PR_LIMIT = 10
PROMPT_ISSUE_LIMIT = 10
PROMPT_PR_DESCRIPTION_LIMIT = 200


def build_artifact_analysis_prompt(bundle: ArtifactBundle) -> str:
    """Render the Stage 1 prompt for an artifact bundle."""
    artifact_summary = serialize_artifact_bundle(bundle)

    return f"""Your task is to analyze a software developer's GitHub repository artifacts and extract structured signals about their technical abilities, code quality, and working style.

## Artifact Data

{artifact_summary}

## Instructions

Analyze the above repository data and produce a JSON response with the following structure. Be evidence-based: every assessment must reference specific artifacts (commits, PRs, issues).

Respond with ONLY valid JSON matching this exact schema:

{{
  "technical_skills": [
    {{
      "skill": "Name of skill/technology",
      "proficiency_level": "beginner | intermediate | advanced | expert",
      "evidence": "Brief description of where this was demonstrated",
      "confidence": 0.0 to 1.0
    }}
  ],
  "code_quality_indicators": [
    {{
      "aspect": "e.g. commit message clarity, PR documentation, code organization",
      "rating": "poor | fair | good | excellent",
      "evidence": "Brief supporting evidence"
    }}
  ],
  "work_complexity": {{
    "average_task_complexity": "low | medium | high",
    "scope_of_work": "Summary of what the candidate built or changed",
    "technical_depth": "Summary of technical depth demonstrated",
    "estimated_experience_years": number
  }},
  "communication_quality": {{
    "commit_message_quality": "poor | fair | good | excellent",
    "pr_description_quality": "poor | fair | good | excellent",
    "issue_engagement": "none | minimal | moderate | active",
    "overall_communication": "Summary of communication patterns"
  }},
  "overall_summary": "2-3 sentence summary of the candidate's profile based on artifacts"
}}

Important guidelines:
- If data is insufficient for a particular signal, note low confidence.
- Do not invent skills not evidenced in the artifacts.
- Consider both quantity and quality of contributions.
- Evaluate commit messages for clarity, PR descriptions for thoroughness.
- Assess code complexity from file change patterns and languages used."""


def build_scoring_prompt(signals: ArtifactSignals, job: JobDescription) -> str:
    """Render the Stage 2 prompt from Stage 1 signals and a job description."""
    signals_json = json.dumps(signals.model_dump(mode="json"), indent=2)
    job_summary = serialize_job_description(job)

    return f"""Your task is to score a software developer candidate against a specific job description, based on their analyzed artifact signals.

## Candidate's Artifact Analysis

{signals_json}

## Job Description

{job_summary}

## Instructions

Score the candidate across 4 components, each 0-100. Then produce an overall weighted score and a concise explanation.

Scoring rubric:
- **skills_alignment** (weight: 35%): How well do the candidate's demonstrated technical skills match the job requirements? Consider both direct matches and transferable skills.
- **code_quality** (weight: 25%): Based on code quality indicators, how does their craftsmanship compare to what this role expects?
- **experience_relevance** (weight: 25%): Does the scope and complexity of their work match the seniority and domain of this role?
- **work_style** (weight: 15%): Do their communication patterns (PRs, commits, issues) suggest they'd work well in this team/role?

Confidence levels:
- "high": Sufficient artifact data and clear alignment/misalignment
- "medium": Some data gaps but reasonable assessment possible
- "low": Insufficient data for reliable scoring

Respond with ONLY valid JSON matching this exact schema:

{{
  "overall_score": number (0-100, weighted average of components),
  "component_scores": [
    {{"category": "skills_alignment", "score": number (0-100), "reasoning": "One sentence explaining this score"}},
    {{"category": "code_quality", "score": number (0-100), "reasoning": "One sentence explaining this score"}},
    {{"category": "experience_relevance", "score": number (0-100), "reasoning": "One sentence explaining this score"}},
    {{"category": "work_style", "score": number (0-100), "reasoning": "One sentence explaining this score"}}
  ],
  "explanation": "2-3 sentence summary: key strengths, gaps, and overall fit",
  "flagged_concerns": ["Specific concerns or caveats, e.g. 'Limited commit history'"],
  "confidence": "high | medium | low"
}}

Important guidelines:
- Be calibrated: 70+ is a strong match, 50-69 is partial, below 50 is weak.
- Justify each score with specific evidence from the artifact signals.
- Flag any data gaps that limit confidence.
- The explanation should be useful for a recruiter making a hiring decision."""


# ----------------------------------------------------------------------
# Serialization helpers
# ----------------------------------------------------------------------


def _date(value) -> str:
    return value.isoformat() if value else "unknown"


def serialize_artifact_bundle(bundle: ArtifactBundle) -> str:
    """Render the bounded, human-readable view of a bundle used in Stage 1."""
    meta = bundle.repo_meta
    languages = ", ".join(f"{lang} ({pct}%)" for lang, pct in meta.languages.items())
    sections: List[str] = [
        f"### Repository: {meta.full_name}\n"
        f"- Description: {meta.description or 'No description'}\n"
        f"- Stars: {meta.stars} | Forks: {meta.forks}\n"
        f"- Languages: {languages or 'unknown'}\n"
        f"- Created: {_date(meta.created_at)} | Updated: {_date(meta.updated_at)}"
    ]

    s = bundle.activity_signals
    sections.append(
        "### Activity Signals\n"
        f"- Commit frequency: {s.commit_frequency} per week\n"
        f"- Active days: {s.active_days}\n"
        f"- Average PR size: {s.avg_pr_size} lines changed\n"
        f"- Average commit size: {s.avg_commit_size} lines changed\n"
        f"- PR merge rate: {round(s.pr_merge_rate * 100)}%\n"
        f"- Review participation: {s.review_participation} comments per PR"
    )

    top_commits = bundle.commits[:PROMPT_COMMIT_LIMIT]
    if top_commits:
        lines = [
            f"- [{c.sha[:7]}] {c.message} (by {c.author}, +{c.additions}/-{c.deletions}, "
            f"{c.files_changed} files, {'/'.join(c.languages)})"
            for c in top_commits
        ]
        sections.append(
            f"### Recent Commits ({len(bundle.commits)} total, showing top {len(top_commits)})\n"
            + "\n".join(lines)
        )

    top_prs = bundle.pull_requests[:PROMPT_PR_LIMIT]
    if top_prs:
        lines = []
        for pr in top_prs:
            merged = ", merged" if pr.merged_at else ""
            description = (
                f"  Description: {pr.description[:PROMPT_PR_DESCRIPTION_LIMIT]}"
                if pr.description
                else "  No description"
            )
            lines.append(
                f'- PR #{pr.number}: "{pr.title}" ({pr.state}{merged}) '
                f"+{pr.additions}/-{pr.deletions}, {pr.files_changed} files, "
                f"{pr.review_comments} reviews\n{description}"
            )
        sections.append(
            f"### Pull Requests ({len(bundle.pull_requests)} total, showing top {len(top_prs)})\n"
            + "\n".join(lines)
        )

    top_issues = bundle.issues[:PROMPT_ISSUE_LIMIT]
    if top_issues:
        lines = []
        for issue in top_issues:
            linked = (
                " linked to PR #" + ", #".join(str(n) for n in issue.linked_pr_numbers)
                if issue.linked_pr_numbers
                else ""
            )
            lines.append(
                f'- Issue #{issue.number}: "{issue.title}" ({issue.state}) '
                f"labels: [{', '.join(issue.labels)}]{linked}"
            )
        sections.append(
            f"### Issues ({len(bundle.issues)} total, showing top {len(top_issues)})\n"
            + "\n".join(lines)
        )

    return "\n\n".join(sections)


def serialize_job_description(job: JobDescription) -> str:
    parts = [
        f"### {job.title} at {job.company}",
        f"**Description:** {job.description}",
        f"**Requirements:** {job.requirements}",
    ]
    if job.daily_tasks:
        parts.append(f"**Daily Tasks:** {job.daily_tasks}")
    if job.expected_outcomes:
        parts.append(f"**Expected Outcomes:** {job.expected_outcomes}")
    if job.tech_stack:
        parts.append(f"**Tech Stack:** {', '.join(job.tech_stack)}")
    if job.experience_level:
        parts.append(f"**Experience Level:** {job.experience_level}")
    return "\n".join(parts)
