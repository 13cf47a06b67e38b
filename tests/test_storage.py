"""Tests for the JSON document helpers."""

import json

import pytest

from localmarket.errors import InvalidSchemaVersionError, StoreError
from localmarket.storage import SCHEMA_VERSION, file_lock, read_document, write_document


class TestDocuments:
    def test_missing_file_returns_empty_copy(self, temp_dir):
        empty = {"items": []}
        data = read_document(temp_dir / "absent.json", empty)

        assert data == {"schema_version": SCHEMA_VERSION, "items": []}
        data["extra"] = True
        assert "extra" not in empty

    def test_write_then_read(self, temp_dir):
        path = temp_dir / "nested" / "doc.json"
        write_document(path, {"schema_version": 1, "items": [1, 2]})

        assert read_document(path, {})["items"] == [1, 2]

    def test_missing_version_rejected(self, temp_dir):
        path = temp_dir / "doc.json"
        path.write_text(json.dumps({"items": []}))

        with pytest.raises(InvalidSchemaVersionError) as exc_info:
            read_document(path, {})
        assert exc_info.value.found == 0

    def test_non_object_rejected(self, temp_dir):
        path = temp_dir / "doc.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(StoreError):
            read_document(path, {})

    def test_file_lock_creates_sidecar(self, temp_dir):
        path = temp_dir / "doc.json"
        with file_lock(path):
            assert (temp_dir / ".doc.json.lock").exists()
