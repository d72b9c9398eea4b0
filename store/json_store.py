"""JSON-file-backed store used by the CLI."""

import json
import logging
import os
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from config import settings
from errors import UpstreamFailure
from store.memory import InMemoryStore

logger = logging.getLogger(__name__)


class JsonFileStore(InMemoryStore):
    """InMemoryStore that reloads from and rewrites a JSON file.

    The file is rewritten after every successful write. A missing file is an
    empty store. When the file cannot be written, the in-memory tables are
    rolled back to the last state that reached disk before the error is raised.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        super().__init__()
        self.path = Path(path or settings.get_data_path())
        self._load()
        self._persisted = self.snapshot()

    def _load(self) -> None:
        if not self.path.exists():
            logger.debug("No store file at %s; starting empty", self.path)
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            self.restore(data)
        except (OSError, json.JSONDecodeError, PydanticValidationError, KeyError) as e:
            raise UpstreamFailure(f"Could not load store file {self.path}: {e}") from e

    def _commit(self) -> None:
        data = self.snapshot()
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.warning("Write to %s failed; rolling back in-memory change", self.path)
            self.restore(self._persisted)
            raise UpstreamFailure(f"Could not write store file {self.path}: {e}") from e
        self._persisted = data
