"""
Model Store - versioned persistence of the threshold classifier.

Layout under MODEL_STORE_DIR:

    fraud-detection-model.json          current model
    history/<trainedAt>_v<version>.json previous saves, newest MODEL_STORE_RETAIN kept

Every file is written to a temporary file in the same directory and moved
into place with os.replace, so readers never see a half-written artifact.
"""

import os
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple, Union

from pydantic import ValidationError

from .models import ClassifierModel
from triplecheck.core.config import settings
from triplecheck.core.exceptions import ModelStoreError
from triplecheck.core.logger import logger

CURRENT_MODEL_FILE = "fraud-detection-model.json"
HISTORY_DIR = "history"


class ModelStore:
    def __init__(self, directory: Union[str, Path, None] = None, retain: Optional[int] = None):
        self.directory = Path(directory or settings.MODEL_STORE_DIR)
        self.retain = settings.MODEL_STORE_RETAIN if retain is None else retain

    @property
    def current_path(self) -> Path:
        return self.directory / CURRENT_MODEL_FILE

    @property
    def history_dir(self) -> Path:
        return self.directory / HISTORY_DIR

    def _write_atomic(self, path: Path, content: str):
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _read(self, path: Path) -> ClassifierModel:
        try:
            return ClassifierModel.model_validate_json(path.read_text(encoding="utf-8"))
        except OSError as e:
            raise ModelStoreError(f"Cannot read model artifact {path}: {e}") from e
        except ValidationError as e:
            raise ModelStoreError(f"Corrupt model artifact {path}: {e.error_count()} errors") from e

    def save(self, model: ClassifierModel) -> str:
        """
        Persist ``model`` as the current model and add it to history.

        Returns:
            History key of the saved model.

        Raises:
            ModelStoreError: the artifact could not be written.
        """
        content = model.model_dump_json(by_alias=True, indent=2)
        key = model.version_key
        history_path = self.history_dir / f"{key}.json"
        existed = history_path.exists()

        try:
            self._write_atomic(history_path, content)
        except OSError as e:
            raise ModelStoreError(f"Cannot write model history to {self.history_dir}: {e}") from e

        try:
            self._write_atomic(self.current_path, content)
        except OSError as e:
            # history only lists models that became current
            if not existed:
                history_path.unlink(missing_ok=True)
            raise ModelStoreError(f"Cannot write model artifact to {self.directory}: {e}") from e

        logger.info(f"💾 Model saved: {self.current_path} (version {model.version}, key {key})")
        self.prune()
        return key

    def load(self) -> Optional[ClassifierModel]:
        """Current model, or None when nothing has been saved yet."""
        if not self.current_path.exists():
            return None
        return self._read(self.current_path)

    def current_signature(self) -> Optional[Tuple[int, int, int]]:
        """(inode, mtime_ns, size) of the current artifact, None when absent."""
        try:
            stat = self.current_path.stat()
        except FileNotFoundError:
            return None
        return stat.st_ino, stat.st_mtime_ns, stat.st_size

    def list_versions(self) -> List[str]:
        """History keys, oldest first."""
        if not self.history_dir.is_dir():
            return []
        return sorted(p.stem for p in self.history_dir.glob("*.json"))

    def load_version(self, key: str) -> Optional[ClassifierModel]:
        path = self.history_dir / f"{key}.json"
        if not path.exists():
            return None
        return self._read(path)

    def prune(self):
        """Drop the oldest history entries beyond ``retain``."""
        if self.retain <= 0:
            return

        for key in self.list_versions()[:-self.retain]:
            try:
                (self.history_dir / f"{key}.json").unlink()
                logger.debug(f"🗑️ Pruned model version {key}")
            except OSError as e:
                logger.warning(f"⚠️ Could not prune model version {key}: {e}")


def save_model(model: ClassifierModel, store: Optional[ModelStore] = None) -> str:
    return (store or ModelStore()).save(model)


def load_model(store: Optional[ModelStore] = None) -> Optional[ClassifierModel]:
    return (store or ModelStore()).load()
