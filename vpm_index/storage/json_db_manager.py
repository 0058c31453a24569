import json
import logging
from pathlib import Path
from typing import Optional

import aiofiles
from pydantic import ValidationError

from vpm_index.domain.errors import RepositoryLoadError
from vpm_index.domain.models import RepositoryDocument
from vpm_index.storage.db_manager import DocumentStorage

logger = logging.getLogger(__name__)


class JsonDocumentStorage(DocumentStorage):
    def __init__(self, path: Path):
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> Optional[RepositoryDocument]:
        if not self._path.exists():
            return None

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RepositoryLoadError(f"Failed to read index {self._path}: {e}") from e

        if not isinstance(raw, dict):
            raise RepositoryLoadError(f"Index {self._path} is not a JSON object")

        # Older documents may lack the packages map entirely.
        if raw.get("packages") is None:
            raw["packages"] = {}

        try:
            document = RepositoryDocument.model_validate(raw)
        except ValidationError as e:
            raise RepositoryLoadError(f"Index {self._path} has an invalid layout: {e}") from e

        logger.debug(f"Loaded {len(document.packages)} package(s) from {self._path}")
        return document

    async def save(self, document: RepositoryDocument) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a temp file first so a crash never leaves a truncated index behind.
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")
        try:
            async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
                await f.write(document.to_json())
            tmp_path.replace(self._path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

        logger.info(f"Wrote index {self._path}")
