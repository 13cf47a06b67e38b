"""JSON document helpers shared by the file-backed stores."""

import fcntl
import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator

from .errors import InvalidSchemaVersionError, StoreError

SCHEMA_VERSION = 1


@contextmanager
def file_lock(path: Path) -> Iterator[None]:
    """Hold an exclusive lock on a sidecar lock file for read-modify-write operations."""
    path.parent.mkdir(parents=True, exist_ok=True)
    lock_path = path.parent / f".{path.name}.lock"
    with open(lock_path, "w") as lock_file:
        fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)


def read_document(path: Path, empty: dict[str, Any]) -> dict[str, Any]:
    """
    Load a versioned JSON document, or a copy of `empty` if the file is absent.

    Raises:
        StoreError: If the file cannot be read or parsed.
        InvalidSchemaVersionError: If schema_version is unsupported.
    """
    if not path.exists():
        return {"schema_version": SCHEMA_VERSION, **empty}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise StoreError(str(path), str(e)) from e

    if not isinstance(data, dict):
        raise StoreError(str(path), "document is not a JSON object")

    version = data.get("schema_version", 0)
    if version != SCHEMA_VERSION:
        raise InvalidSchemaVersionError(str(path), version, SCHEMA_VERSION)
    return data


def write_document(path: Path, data: dict[str, Any]) -> None:
    """
    Save a JSON document atomically.

    Uses write-to-temp-then-rename for atomicity.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}_", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(temp_path, path)
    except Exception:
        try:
            os.unlink(temp_path)
        except OSError:
            pass
        raise
