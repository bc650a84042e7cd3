"""
Structured-Output LLM Client.

Wraps the OpenAI chat completions API so that every call returns parsed JSON.
Requests force JSON mode and low-variance sampling.

Retry policy (tenacity):
- at most `max_attempts` attempts, exponential backoff starting at
  `initial_backoff` seconds and doubling per attempt
- responses that are not valid JSON fail immediately and are never retried
- rate limiting is retried, then surfaced as ModelRateLimitError
- any other failure is retried, then surfaced as ModelAPIError
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, Optional

from openai import AsyncOpenAI, RateLimitError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
import tiktoken
from tiktoken import Encoding

from config import Settings, logger
from config import settings as default_settings
from errors import EvaluationParseError, ModelAPIError, ModelRateLimitError
from evaluators.models import StructuredResponse, TokenUsage

SYSTEM_PROMPT = (
    "You are a senior technical recruiter's AI assistant. "
    "Always answer with a single valid JSON object and nothing else."
)


def is_rate_limit_error(error: BaseException) -> bool:
    """Whether an exception signals upstream rate limiting."""
    if isinstance(error, RateLimitError):
        return True
    if getattr(error, "status_code", None) == 429:
        return True
    message = str(error).lower()
    return "429" in message or "rate limit" in message


def is_retryable_error(error: BaseException) -> bool:
    """Transient and rate-limit failures are retried; parse failures and cancellation are not."""
    return isinstance(error, Exception) and not isinstance(error, EvaluationParseError)


class LLMClient:
    """
    JSON-mode client over AsyncOpenAI with retry and backoff.

    Attributes:
        client (AsyncOpenAI): OpenAI API client
        model (str): Chat model name
        encoding (Optional[Encoding]): Tokenizer used to log prompt sizes
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        top_p: float = 0.8,
        timeout: float = 120.0,
        max_attempts: int = 3,
        initial_backoff: float = 1.0,
        encoding: Optional[Encoding] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the LLM client.

        Args:
            client (AsyncOpenAI): OpenAI API client
            model (str): Chat model name
            temperature (float): Sampling temperature
            top_p (float): Nucleus sampling mass
            timeout (float): Per-request timeout in seconds
            max_attempts (int): Total attempts per call
            initial_backoff (float): First retry delay in seconds
            encoding (Optional[Encoding]): Tokenizer for prompt token logging
            sleep (Callable): Coroutine used to wait between attempts
        """
        self.client = client
        self.model = model
        self.temperature = temperature
        self.top_p = top_p
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.initial_backoff = initial_backoff
        self.encoding = encoding
        self.sleep = sleep

    def _count_tokens(self, text: str) -> int:
        """
        Count tokens in text using the model's tokenizer.

        Args:
            text (str): Text to count tokens for

        Returns:
            int: Number of tokens in text, 0 without an encoding
        """
        if self.encoding is None:
            return 0
        return len(self.encoding.encode(text))

    async def _generate_once(self, prompt: str) -> StructuredResponse[Any]:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            response_format={"type": "json_object"},
            temperature=self.temperature,
            top_p=self.top_p,
            timeout=self.timeout,
        )

        text = response.choices[0].message.content or ""
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            raise EvaluationParseError(
                f"Failed to parse model response as JSON: {text[:200]}",
                details={"raw_text": text},
            ) from e

        usage = response.usage
        return StructuredResponse(
            data=parsed,
            tokens_used=TokenUsage(
                prompt=getattr(usage, "prompt_tokens", 0) or 0,
                completion=getattr(usage, "completion_tokens", 0) or 0,
                total=getattr(usage, "total_tokens", 0) or 0,
            ),
        )

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Model call failed, retrying",
            attempt=retry_state.attempt_number,
            max_attempts=self.max_attempts,
            wait_seconds=retry_state.next_action.sleep if retry_state.next_action else None,
            rate_limited=bool(error and is_rate_limit_error(error)),
            error=str(error),
        )

    async def generate_structured_response(self, prompt: str) -> StructuredResponse[Any]:
        """
        Generate a JSON response for a prompt.

        Args:
            prompt (str): Fully rendered prompt

        Returns:
            StructuredResponse: Parsed JSON and token usage

        Raises:
            EvaluationParseError: If the response is not valid JSON (no retry)
            ModelRateLimitError: If every attempt was rate limited
            ModelAPIError: If attempts are exhausted for any other reason
        """
        logger.debug(
            "Sending structured prompt",
            model=self.model,
            prompt_tokens=self._count_tokens(prompt),
        )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.initial_backoff, exp_base=2),
            retry=retry_if_exception(is_retryable_error),
            before_sleep=self._log_retry,
            sleep=self.sleep,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._generate_once(prompt)
        except EvaluationParseError:
            logger.error("Model returned a non-JSON response", model=self.model)
            raise
        except Exception as e:
            if is_rate_limit_error(e):
                logger.error(
                    "Model rate limit exceeded after retries",
                    model=self.model,
                    attempts=self.max_attempts,
                )
                raise ModelRateLimitError(
                    "Model API rate limit exceeded after retries.", details=e
                ) from e
            logger.error(
                "Model call failed after retries",
                model=self.model,
                attempts=self.max_attempts,
                error=str(e),
            )
            raise ModelAPIError(
                f"Model API call failed after {self.max_attempts} attempts: {e}",
                details=e,
            ) from e

        logger.info(
            "Structured response received",
            model=self.model,
            total_tokens=response.tokens_used.total,
        )
        return response


def build_llm_client(
    settings: Optional[Settings] = None, encoding: Optional[Encoding] = None
) -> LLMClient:
    """
    Create an LLMClient from explicit configuration.

    Without an explicit encoding, the tokenizer named by
    settings.openai_encoding_name is loaded for prompt token logging.

    Raises:
        ModelAPIError: If no OpenAI API key is configured
    """
    settings = settings or default_settings
    if settings.openai_api_key is None:
        raise ModelAPIError("OPENAI_API_KEY is not configured.")

    openai_client = AsyncOpenAI(
        api_key=settings.openai_api_key.get_secret_value(),
        base_url=settings.openai_base_url,
        timeout=settings.openai_timeout_seconds,
        max_retries=0,
    )
    if encoding is None:
        encoding = tiktoken.get_encoding(settings.openai_encoding_name)
    return LLMClient(
        openai_client,
        model=settings.openai_llm_model,
        temperature=settings.openai_temperature,
        top_p=settings.openai_top_p,
        timeout=settings.openai_timeout_seconds,
        max_attempts=settings.llm_max_attempts,
        initial_backoff=settings.llm_initial_backoff_seconds,
        encoding=encoding,
    )
