"""JSON-file backed repositories.

Each record kind lives in its own file under the data directory::

    data/
    ├── patients.json
    ├── templates.json
    └── documents.json

Mutations are applied in memory first and then flushed to disk. A failed
flush is logged and raised as StorageError; the in-memory state keeps the
change so the caller may retry.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional, Type

from clinidoc.models.document import Document
from clinidoc.models.patient import Patient
from clinidoc.models.template import Template
from clinidoc.store.repositories import (
    InMemoryDocumentStore,
    InMemoryPatientStore,
    InMemoryTemplateStore,
)
from clinidoc.utils.dates import utc_now
from clinidoc.utils.exceptions import StorageError

logger = logging.getLogger(__name__)


class JsonFileMixin:
    """Loads records from a JSON file and rewrites the file after each change.

    Subclasses combine this mixin with an in-memory repository and set
    ``record_class``.
    """

    record_class: Type = dict

    def _init_file(self, file_path: Path) -> None:
        self.file_path = file_path
        self._load()

    def _load(self) -> None:
        if not self.file_path.exists():
            logger.debug(
                f"No {self.record_type} store at {self.file_path}, starting empty"
            )
            return

        try:
            payload = json.loads(self.file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.error(f"Corrupted store file {self.file_path}: {e}")
            raise StorageError(
                f"Corrupted {self.record_type} store {self.file_path} "
                f"at line {e.lineno}: {e.msg}"
            ) from e
        except (OSError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read {self.file_path}: {e}")
            raise StorageError(
                f"Failed to read {self.record_type} store: {self.file_path}. "
                f"Error: {e}"
            ) from e

        try:
            records = [self.record_class.from_dict(item) for item in payload]
        except (KeyError, TypeError, ValueError) as e:
            raise StorageError(
                f"Invalid {self.record_type} record in {self.file_path}: {e}"
            ) from e

        self._records = {record.id: record for record in records}
        logger.info(
            f"Loaded {len(records)} {self.record_type} records from {self.file_path}"
        )

    def _after_change(self) -> None:
        self.flush()

    def flush(self) -> None:
        """Write all records to the store file atomically.

        Raises:
            StorageError: If the file cannot be written
        """
        payload = [record.to_dict() for record in self._records.values()]
        tmp_name: Optional[str] = None
        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.file_path.parent,
                prefix=f".{self.file_path.name}.",
                suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.file_path)
        except OSError as e:
            logger.error(
                f"Failed to write {self.record_type} store {self.file_path}: {e}"
            )
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StorageError(
                f"Failed to write {self.record_type} store: {self.file_path}. "
                f"Ensure write permissions are available. Error: {e}"
            ) from e

        logger.debug(
            f"Flushed {len(payload)} {self.record_type} records to {self.file_path}"
        )


class JsonPatientStore(JsonFileMixin, InMemoryPatientStore):
    record_class = Patient

    def __init__(
        self, file_path: Path, clock: Callable[[], datetime] = utc_now
    ) -> None:
        super().__init__(clock)
        self._init_file(file_path)


class JsonTemplateStore(JsonFileMixin, InMemoryTemplateStore):
    record_class = Template

    def __init__(
        self, file_path: Path, clock: Callable[[], datetime] = utc_now
    ) -> None:
        super().__init__(clock)
        self._init_file(file_path)


class JsonDocumentStore(JsonFileMixin, InMemoryDocumentStore):
    record_class = Document

    def __init__(
        self, file_path: Path, clock: Callable[[], datetime] = utc_now
    ) -> None:
        super().__init__(clock)
        self._init_file(file_path)


@dataclass
class Stores:
    """The three repositories of one data directory."""

    patients: JsonPatientStore
    templates: JsonTemplateStore
    documents: JsonDocumentStore


def open_stores(data_dir: Path, clock: Callable[[], datetime] = utc_now) -> Stores:
    """Open the JSON stores in a data directory.

    Args:
        data_dir: Directory holding patients.json, templates.json, documents.json
        clock: Time source for update stamps

    Returns:
        Stores bundle

    Raises:
        StorageError: If an existing store file cannot be read
    """
    logger.debug(f"Opening stores in {data_dir}")
    return Stores(
        patients=JsonPatientStore(data_dir / "patients.json", clock),
        templates=JsonTemplateStore(data_dir / "templates.json", clock),
        documents=JsonDocumentStore(data_dir / "documents.json", clock),
    )
