"""
Artifact archive extraction.

GitHub serves every workflow artifact as a ZIP. The payloads we care about
(skeleton records, docker metadata) are a single JSON file inside.
"""

import io
import json
import zipfile
import zlib
from typing import Type, TypeVar

from pydantic import BaseModel, ValidationError

from pbom.core.constants import ARCHIVE_JSON_SUFFIX

ModelT = TypeVar("ModelT", bound=BaseModel)


class ArchiveError(Exception):
    """Raised when an artifact archive does not yield a decodable JSON payload."""


def extract_json(archive: bytes, model: Type[ModelT]) -> ModelT:
    """
    Decode the first JSON entry of a ZIP archive as ``model``.

    Args:
        archive: Raw ZIP bytes
        model: Target pydantic model

    Returns:
        The decoded model instance

    Raises:
        ArchiveError: If the archive cannot be opened, holds no JSON entry,
            or the entry does not decode as ``model``
    """
    try:
        zf = zipfile.ZipFile(io.BytesIO(archive))
    except (zipfile.BadZipFile, ValueError, OSError) as e:
        raise ArchiveError(f"opening artifact zip: {e}") from e

    with zf:
        for info in zf.infolist():
            if not info.filename.endswith(ARCHIVE_JSON_SUFFIX):
                continue
            try:
                raw = zf.read(info)
            except (zipfile.BadZipFile, RuntimeError, NotImplementedError, zlib.error, EOFError, OSError) as e:
                # RuntimeError: encrypted entry; NotImplementedError: unsupported compression
                raise ArchiveError(f"reading {info.filename}: {e}") from e
            try:
                payload = json.loads(raw)
            except (ValueError, RecursionError) as e:
                raise ArchiveError(f"parsing {info.filename}: {e}") from e
            try:
                return model.model_validate(payload)
            except ValidationError as e:
                raise ArchiveError(f"decoding {info.filename} as {model.__name__}: {e}") from e

    raise ArchiveError("no JSON file found in artifact zip")
