"""Process-local draft storage, used when no drafts directory should be touched."""

import copy
from typing import Any, Optional

from src.bulk_operations_domain.domain.repositories.draft_repository import IDraftRepository


class InMemoryDraftRepository(IDraftRepository):
    def __init__(self) -> None:
        self._drafts: dict[str, dict[str, Any]] = {}

    def save(self, name: str, payload: dict[str, Any]) -> None:
        self._drafts[name] = copy.deepcopy(payload)

    def load(self, name: str) -> Optional[dict[str, Any]]:
        payload = self._drafts.get(name)
        return copy.deepcopy(payload) if payload is not None else None

    def delete(self, name: str) -> bool:
        return self._drafts.pop(name, None) is not None

    def list_names(self) -> list[str]:
        return sorted(self._drafts)
