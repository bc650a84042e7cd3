"""
Application Configuration Module.

Manages application settings and environment variables using Pydantic for validation.
Provides centralized configuration management with type safety and validation.

Features:
- Environment variable loading and validation
- Secure credential management
- Explicit per-call timeouts and retry policy for outbound clients
- Path normalization for output directories

Clients never read the environment themselves: they receive the values they
need from a `Settings` instance, so tests can pass their own.
"""

import os
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from log_manager import LogManager


class Settings(BaseSettings):
    """
    Application configuration settings with validation.

    Manages and validates all application settings including:
    - Application identification and logging
    - GitHub client configuration
    - OpenAI client configuration and retry policy
    - Command-line screening inputs

    Attributes:
        app_name (str): Name of the application
        dev (bool): Debug mode flag
        log_dir (str): Directory for log files
        log_level (int): Logging level (default: info)
        github_token (Optional[SecretStr]): GitHub token used by the command-line entry point
        github_base_url (str): GitHub REST API base URL
        github_timeout_seconds (float): Per-request GitHub timeout
        github_per_page (int): Page size used when paginating GitHub lists
        openai_api_key (Optional[SecretStr]): OpenAI API key
        openai_llm_model (str): OpenAI LLM model to use
        openai_encoding_name (str): tiktoken encoding used for prompt token counts
        openai_timeout_seconds (float): Per-request OpenAI timeout
        llm_max_attempts (int): Total attempts per structured model call
        llm_initial_backoff_seconds (float): First retry delay, doubled per attempt
        report_output_dir (str): Directory for evaluation output files
    """

    # Application settings
    app_name: str = Field(default="Screener", description="Application name")
    dev: bool = Field(default=False, description="Debug mode")
    log_dir: str = Field(default="logs", description="Logging directory")
    log_level: int = Field(default=20, description="Logging level, default info")

    # GitHub configuration
    github_token: Optional[SecretStr] = Field(default=None, description="GitHub token")
    github_base_url: str = Field(
        default="https://api.github.com", description="GitHub REST API base URL"
    )
    github_timeout_seconds: float = Field(
        default=15.0, gt=0, description="GitHub per-request timeout in seconds"
    )
    github_per_page: int = Field(
        default=100, ge=1, le=100, description="GitHub pagination page size"
    )

    # OpenAI configuration
    openai_api_key: Optional[SecretStr] = Field(
        default=None, description="OpenAI API key"
    )
    openai_base_url: Optional[str] = Field(
        default=None, description="Override for the OpenAI API base URL"
    )
    openai_llm_model: str = Field(default="gpt-4o-mini", description="OpenAI LLM model")
    openai_encoding_name: str = Field(default="o200k_base", description="Encoding name")
    openai_timeout_seconds: float = Field(
        default=120.0, gt=0, description="OpenAI per-request timeout in seconds"
    )
    openai_temperature: float = Field(
        default=0.2, ge=0, le=2, description="Sampling temperature"
    )
    openai_top_p: float = Field(default=0.8, gt=0, le=1, description="Nucleus sampling")

    # Retry policy for structured model calls
    llm_max_attempts: int = Field(default=3, ge=1, description="Total model attempts")
    llm_initial_backoff_seconds: float = Field(
        default=1.0, ge=0, description="Initial backoff, doubled per attempt"
    )

    # Command-line screening inputs
    repo_url: Optional[str] = Field(
        default=None, description="Repository to screen from the command line"
    )
    job_description_path: Optional[str] = Field(
        default=None, description="Path to a JSON job description"
    )
    candidate_github: Optional[str] = Field(
        default=None, description="Candidate GitHub handle override"
    )
    since_days: int = Field(default=90, ge=1, description="Commit lookback in days")
    max_commits: int = Field(default=50, ge=1, description="Maximum commits to fetch")

    report_output_dir: str = Field(
        default="reports", description="Evaluation output directory"
    )

    @field_validator("report_output_dir")
    def ensure_absolute_path(cls, v: str) -> str:
        """
        Ensure report directory path is absolute.

        Converts relative paths to absolute paths based on current working directory.

        Args:
            v (str): Directory path to validate

        Returns:
            str: Absolute path to report directory
        """
        if not os.path.isabs(v):
            return os.path.abspath(v)
        return v

    # Configure env file loading
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in .env file
    )


# Create global settings instance
settings = Settings()

# Initialize logging configuration
logger = LogManager(
    app_name=settings.app_name.lower(),
    log_dir=settings.log_dir,
    development=settings.dev,
    level=settings.log_level,
).logger
