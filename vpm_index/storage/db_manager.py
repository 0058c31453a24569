from abc import ABC, abstractmethod
from typing import Optional

from vpm_index.domain.models import RepositoryDocument


class DocumentStorage(ABC):
    """
    Abstract base class for persisting one index document.
    """

    @abstractmethod
    def exists(self) -> bool:
        """Whether a previously persisted document is available."""
        pass

    @abstractmethod
    def load(self) -> Optional[RepositoryDocument]:
        """
        Load the persisted document, or return None when there is none yet.
        Raises RepositoryLoadError when a document exists but cannot be read.
        """
        pass

    @abstractmethod
    async def save(self, document: RepositoryDocument) -> None:
        """Overwrite the persisted document with the given one."""
        pass
