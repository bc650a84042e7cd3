"""
Screening Pipeline.

Wires the fetcher, normalizer and the two evaluation stages together:

    repository reference -> RawArtifactData -> ArtifactBundle
        -> ArtifactSignals (Stage 1) -> EvaluationResult (Stage 2)

Classified ScreenerErrors pass through unchanged. Anything else is wrapped in
PipelineError with the original exception as its cause.
"""

from typing import Any, Callable, Dict, Optional, Union

from pydantic import BaseModel

from config import Settings, logger
from config import settings as default_settings
from errors import PipelineError, ScreenerError
from evaluators.analyzer import ArtifactAnalyzer
from evaluators.llm_client import LLMClient, build_llm_client
from evaluators.models import EvaluationResult, JobDescription
from evaluators.scorer import CandidateScorer
from miners.github_client import GitHubClient
from miners.github_miner import (
    GitHubMiner,
    build_github_client,
    parse_repository_reference,
)
from miners.models import ExtractOptions
from normalizers.models import ArtifactBundle
from normalizers.normalizer import normalize_artifacts


class PipelineResult(BaseModel):
    """Evidence bundle together with the evaluation computed from it."""

    artifact_bundle: ArtifactBundle
    evaluation: EvaluationResult


class ScreeningPipeline:
    """
    End-to-end candidate screening.

    Attributes:
        settings (Settings): Configuration used to build clients
        github_client_factory (Callable[[str], GitHubClient]): Builds a client from a token
        llm_client_factory (Callable[[], LLMClient]): Builds the model client
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        github_client_factory: Optional[Callable[[str], GitHubClient]] = None,
        llm_client_factory: Optional[Callable[[], LLMClient]] = None,
    ):
        self.settings = settings or default_settings
        self.github_client_factory = github_client_factory or (
            lambda token: build_github_client(token, self.settings)
        )
        self.llm_client_factory = llm_client_factory or (
            lambda: build_llm_client(self.settings)
        )

    async def extract_and_normalize(
        self,
        github_token: str,
        repo_reference: str,
        options: Optional[ExtractOptions] = None,
    ) -> ArtifactBundle:
        """
        Fetch a repository and normalize it into an ArtifactBundle.

        Args:
            github_token (str): Token of the user whose repository is read
            repo_reference (str): Repository URL or owner/name reference
            options (Optional[ExtractOptions]): Extraction limits and toggles

        Returns:
            ArtifactBundle: Immutable evidence bundle

        Raises:
            ScreenerError: Classified fetch failures, or PipelineError for anything else
        """
        options = options or ExtractOptions()
        try:
            parse_repository_reference(repo_reference)
            client = self.github_client_factory(github_token)
            try:
                raw = await GitHubMiner(client).fetch_artifacts(repo_reference, options)
            finally:
                client.close()

            bundle = normalize_artifacts(
                raw, repo_reference, candidate_github=options.candidate_github
            )
        except ScreenerError:
            raise
        except Exception as e:
            logger.error(
                "Artifact extraction failed", repository=repo_reference, error=str(e)
            )
            raise PipelineError(f"Artifact extraction failed: {e}", details=e) from e

        logger.info(
            "Artifact bundle created",
            bundle_id=bundle.id,
            candidate=bundle.candidate_github,
            commits=len(bundle.commits),
            pull_requests=len(bundle.pull_requests),
            issues=len(bundle.issues),
        )
        return bundle

    async def evaluate_candidate(
        self,
        artifact_bundle: Union[ArtifactBundle, Dict[str, Any]],
        job_description: Union[JobDescription, Dict[str, Any]],
    ) -> EvaluationResult:
        """
        Run both evaluation stages on a bundle.

        Args:
            artifact_bundle (Union[ArtifactBundle, Dict]): Bundle or its JSON form
            job_description (Union[JobDescription, Dict]): Job or its JSON form

        Returns:
            EvaluationResult: Scores with token usage summed over both stages

        Raises:
            ScreenerError: Classified model failures, or PipelineError for anything else
        """
        try:
            bundle = ArtifactBundle.model_validate(artifact_bundle)
            job = JobDescription.model_validate(job_description)

            llm_client = self.llm_client_factory()
            analysis = await ArtifactAnalyzer(llm_client).analyze(bundle)
            return await CandidateScorer(llm_client).score(
                analysis.data, job, bundle.id, prior_usage=analysis.tokens_used
            )
        except ScreenerError:
            raise
        except Exception as e:
            logger.error("Candidate evaluation failed", error=str(e))
            raise PipelineError(f"Candidate evaluation failed: {e}", details=e) from e

    async def run_screening_pipeline(
        self,
        github_token: str,
        repo_reference: str,
        job_description: Union[JobDescription, Dict[str, Any]],
        options: Optional[ExtractOptions] = None,
    ) -> PipelineResult:
        """Extract, normalize and evaluate in one call."""
        logger.info("Starting screening pipeline", repository=repo_reference)
        bundle = await self.extract_and_normalize(github_token, repo_reference, options)
        evaluation = await self.evaluate_candidate(bundle, job_description)
        logger.info(
            "Screening pipeline completed",
            repository=repo_reference,
            evaluation_id=evaluation.id,
            overall_score=evaluation.overall_score,
        )
        return PipelineResult(artifact_bundle=bundle, evaluation=evaluation)


async def extract_and_normalize(
    github_token: str,
    repo_reference: str,
    options: Optional[ExtractOptions] = None,
) -> ArtifactBundle:
    return await ScreeningPipeline().extract_and_normalize(
        github_token, repo_reference, options
    )


async def evaluate_candidate(
    artifact_bundle: Union[ArtifactBundle, Dict[str, Any]],
    job_description: Union[JobDescription, Dict[str, Any]],
) -> EvaluationResult:
    return await ScreeningPipeline().evaluate_candidate(artifact_bundle, job_description)


async def run_screening_pipeline(
    github_token: str,
    repo_reference: str,
    job_description: Union[JobDescription, Dict[str, Any]],
    options: Optional[ExtractOptions] = None,
) -> PipelineResult:
    return await ScreeningPipeline().run_screening_pipeline(
        github_token, repo_reference, job_description, options
    )
