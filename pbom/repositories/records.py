import asyncio
import logging
import os
from pathlib import Path
from typing import Union

from pbom.core.constants import PBOM_FILE_EXTENSION
from pbom.models.record import PipelineRecord

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Raised when a record cannot be written to the storage directory."""


class RecordStore:
    """
    File-backed store for enriched records.

    One file per (owner, repo, run id), named ``{owner}_{repo}_{run_id}.pbom.json``.
    Writing the same identity again replaces the previous file.
    """

    def __init__(self, directory: Union[str, os.PathLike]):
        self.directory = Path(directory)

    def path_for(self, owner: str, repo: str, run_id: int) -> Path:
        return self.directory / f"{owner}_{repo}_{run_id}{PBOM_FILE_EXTENSION}"

    def write(self, record: PipelineRecord, owner: str, repo: str, run_id: int) -> Path:
        """Serialize ``record`` as pretty JSON and write it, creating the directory if needed."""
        path = self.path_for(owner, repo, run_id)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"creating storage dir {self.directory}: {e}") from e

        try:
            path.write_text(record.to_json(), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"writing PBOM file {path}: {e}") from e

        logger.debug(f"Wrote PBOM {record.id} to {path}")
        return path

    async def save(self, record: PipelineRecord, owner: str, repo: str, run_id: int) -> Path:
        """Async wrapper around write() that keeps file I/O off the event loop."""
        return await asyncio.to_thread(self.write, record, owner, repo, run_id)

