# src/bulk_operations_domain/infrastructure/persistence/json_draft_repository.py
import hashlib
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Optional

from src.bulk_operations_domain.domain.repositories.draft_repository import IDraftRepository
from src.common.config.settings import settings
from src.common.exceptions.custom_exceptions import ApplicationError

logger = logging.getLogger(__name__)


class JsonDraftRepository(IDraftRepository):
    """
    Keeps each draft as one JSON file in the drafts directory.

    A file holds {"name": <draft name>, "payload": <draft>}. Names that are already safe file
    names map to <name>.json; any other name gets a hash suffix so "a b" and "a_b" stay apart.
    """

    def __init__(self, drafts_dir: Optional[str] = None) -> None:
        self.drafts_dir = Path(drafts_dir or settings.DRAFTS_DIR)

    def _path_for(self, name: str) -> Path:
        slug = re.sub(r"[^A-Za-z0-9_.-]+", "_", name.strip()).strip("._")
        if not slug:
            raise ValueError(f"Invalid draft name: {name!r}")
        if slug != name:
            slug = f"{slug}-{hashlib.sha1(name.encode('utf-8')).hexdigest()[:8]}"
        return self.drafts_dir / f"{slug}.json"

    def _read(self, path: Path) -> Optional[dict[str, Any]]:
        try:
            with path.open(encoding="utf-8") as handle:
                document = json.load(handle)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable draft at {path}: {e}")
            return None
        except OSError as e:
            raise ApplicationError(f"Could not read draft file {path}", original_exception=e)
        if not isinstance(document, dict) or "name" not in document or "payload" not in document:
            logger.warning(f"Ignoring draft file without a name at {path}")
            return None
        return document

    def save(self, name: str, payload: dict[str, Any]) -> None:
        path = self._path_for(name)
        tmp_path = None
        try:
            self.drafts_dir.mkdir(parents=True, exist_ok=True)
            # Write to a temp file first so a crash never leaves half a draft behind
            fd, tmp_path = tempfile.mkstemp(dir=self.drafts_dir, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump({"name": name, "payload": payload}, handle, ensure_ascii=False, indent=2, default=str)
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as e:
            raise ApplicationError(f"Could not save draft '{name}'", original_exception=e)
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)
        logger.debug(f"Saved draft '{name}' to {path}")

    def load(self, name: str) -> Optional[dict[str, Any]]:
        path = self._path_for(name)
        if not path.exists():
            return None
        document = self._read(path)
        if document is None:
            return None
        if document["name"] != name:
            logger.warning(f"Draft file {path} belongs to '{document['name']}', not '{name}'")
            return None
        return document["payload"]

    def delete(self, name: str) -> bool:
        path = self._path_for(name)
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return False

    def list_names(self) -> list[str]:
        if not self.drafts_dir.exists():
            return []
        documents = (self._read(path) for path in self.drafts_dir.glob("*.json"))
        return sorted(document["name"] for document in documents if document is not None)
