# src/bulk_operations_domain/domain/repositories/draft_repository.py
"""Storage for unfinished bulk stock forms."""
from abc import ABC, abstractmethod
from typing import Any, Optional


class IDraftRepository(ABC):

    @abstractmethod
    def save(self, name: str, payload: dict[str, Any]) -> None:
        """Stores (or replaces) a draft under the given name."""
        pass

    @abstractmethod
    def load(self, name: str) -> Optional[dict[str, Any]]:
        """Returns the stored draft, or None if there is none."""
        pass

    @abstractmethod
    def delete(self, name: str) -> bool:
        pass

    @abstractmethod
    def list_names(self) -> list[str]:
        pass
