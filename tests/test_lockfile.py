"""Tests for the generation lockfile."""

import json

from gql_netgraph.core.lockfile import (
    create_lockfile,
    hash_operations,
    is_lockfile_current,
    read_lockfile,
    write_lockfile,
)


class TestLockfile:
    """Tests for creating, writing and reading lockfiles."""

    def test_hash_is_sha1(self):
        assert hash_operations("") == "da39a3ee5e6b4b0d3255bfef95601890afd80709"

    def test_written_format(self, tmp_path):
        path = tmp_path / "netlifyGraph.lock"
        write_lockfile(path, create_lockfile("abc", "query Q { meta }"))
        data = json.loads(path.read_text())
        assert data == {
            "version": "v0",
            "locked": {
                "schemaId": "abc",
                "operationsHash": hash_operations("query Q { meta }"),
            },
        }

    def test_read_back(self, tmp_path):
        path = tmp_path / "nested" / "netlifyGraph.lock"
        write_lockfile(path, create_lockfile("abc", "doc"))
        lockfile = read_lockfile(path)
        assert lockfile.locked.schema_id == "abc"
        assert is_lockfile_current(lockfile, "abc", "doc")

    def test_stale(self):
        lockfile = create_lockfile("abc", "doc")
        assert not is_lockfile_current(lockfile, "other", "doc")
        assert not is_lockfile_current(lockfile, "abc", "changed")
        assert not is_lockfile_current(None, "abc", "doc")

    def test_missing_file(self, tmp_path):
        assert read_lockfile(tmp_path / "missing.lock") is None

    def test_invalid_file(self, tmp_path, caplog):
        path = tmp_path / "netlifyGraph.lock"
        path.write_text('{"version": "v9"}')
        assert read_lockfile(path) is None
        assert "Ignoring invalid lockfile" in caplog.text
