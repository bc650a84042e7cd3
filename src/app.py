"""
Main Application Entry Point.

Screens a single repository from the command line:
- Loads the job description JSON file named in settings
- Runs extraction, normalization and both evaluation stages
- Writes the bundle and the evaluation to the report output directory
- Logs classified failures with their code and HTTP status

The application can be run directly once GITHUB_TOKEN, OPENAI_API_KEY,
REPO_URL and JOB_DESCRIPTION_PATH are configured.
"""

import asyncio
import json
import os
import sys

from config import settings, logger
from errors import ScreenerError, http_status_for
from evaluators.models import JobDescription
from miners.models import ExtractOptions
from pipeline import PipelineResult, ScreeningPipeline


def load_job_description(path: str) -> JobDescription:
    """Read and validate a job description JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return JobDescription.model_validate(json.load(f))


def write_result(result: PipelineResult, output_dir: str) -> str:
    """
    Write a pipeline result as JSON.

    Args:
        result (PipelineResult): Bundle and evaluation to persist
        output_dir (str): Directory the file is written to

    Returns:
        str: Path of the written file
    """
    os.makedirs(output_dir, exist_ok=True)
    path = os.path.join(output_dir, f"evaluation_{result.evaluation.id}.json")
    with open(path, "w", encoding="utf-8") as f:
        f.write(result.model_dump_json(indent=2))
    return path


async def main() -> int:
    """
    Execute the screening workflow.

    Returns:
        int: Process exit code
    """
    if settings.github_token is None or not settings.repo_url:
        logger.error("GITHUB_TOKEN and REPO_URL must be configured")
        return 2
    if not settings.job_description_path:
        logger.error("JOB_DESCRIPTION_PATH must be configured")
        return 2

    job = load_job_description(settings.job_description_path)
    options = ExtractOptions(
        max_commits=settings.max_commits,
        since_days=settings.since_days,
        candidate_github=settings.candidate_github,
    )

    logger.info("Screening repository", repository=settings.repo_url, job_id=job.id)
    try:
        result = await ScreeningPipeline(settings).run_screening_pipeline(
            settings.github_token.get_secret_value(), settings.repo_url, job, options
        )
    except ScreenerError as e:
        logger.error(
            "Screening failed",
            code=e.code.value,
            http_status=http_status_for(e),
            error=e.message,
        )
        return 1

    path = write_result(result, settings.report_output_dir)
    logger.info(
        "Evaluation written",
        path=path,
        overall_score=result.evaluation.overall_score,
        confidence=result.evaluation.confidence,
    )
    return 0


if __name__ == "__main__":
    logger.info("Starting application ...")
    sys.exit(asyncio.run(main()))
