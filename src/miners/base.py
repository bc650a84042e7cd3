"""
Abstract Base Class for Repository Miners.

Defines the interface for repository data fetching implementations.
All repository miners (GitHub, GitLab, etc.) should implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Optional

from miners.models import ExtractOptions, RawArtifactData


class RepositoryMiner(ABC):
    """
    Abstract base class for repository miners.

    Defines the contract for fetching raw repository evidence from different
    sources. Implementations should handle:
    - Parsing the caller's repository reference
    - Bounded, concurrent data extraction
    - Translation of upstream failures into screener errors
    """

    @abstractmethod
    async def fetch_artifacts(
        self, repo_reference: str, options: Optional[ExtractOptions] = None
    ) -> RawArtifactData:
        """
        Extract all raw evidence from a repository.

        Args:
            repo_reference (str): Repository URL or owner/name reference
            options (Optional[ExtractOptions]): Extraction limits and toggles

        Returns:
            RawArtifactData: Collected repository data

        Raises:
            ScreenerError: If the reference is invalid or fetching fails
        """
        pass
