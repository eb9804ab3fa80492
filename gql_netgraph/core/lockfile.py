"""Lockfile pinning the schema and operations a library was generated from."""

import hashlib
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .console import get_logger

DEFAULT_LOCKFILE_NAME = "netlifyGraph.lock"


class LockedState(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    schema_id: str = Field(alias="schemaId")
    operations_hash: str = Field(alias="operationsHash")


class Lockfile(BaseModel):
    """The ``v0`` lockfile format."""

    version: Literal["v0"] = "v0"
    locked: LockedState


def hash_operations(operations_doc: str) -> str:
    """SHA-1 hex digest of an operations document."""
    return hashlib.sha1(operations_doc.encode("utf-8")).hexdigest()


def create_lockfile(schema_id: str, operations_file_contents: str) -> Lockfile:
    return Lockfile(
        locked=LockedState(
            schema_id=schema_id,
            operations_hash=hash_operations(operations_file_contents),
        )
    )


def read_lockfile(path: str | Path) -> Lockfile | None:
    """Read a lockfile, returning None when it is missing or unreadable."""
    lock_path = Path(path)
    if not lock_path.is_file():
        return None
    try:
        return Lockfile.model_validate_json(lock_path.read_text(encoding="utf-8"))
    except ValidationError as e:
        get_logger(__name__).warning("Ignoring invalid lockfile %s: %s", lock_path, e)
        return None


def write_lockfile(path: str | Path, lockfile: Lockfile):
    lock_path = Path(path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock_path.write_text(lockfile.model_dump_json(by_alias=True, indent=2) + "\n", encoding="utf-8")


def is_lockfile_current(lockfile: Lockfile | None, schema_id: str, operations_file_contents: str) -> bool:
    """Check whether a lockfile matches the given schema id and operations."""
    if lockfile is None:
        return False
    return (
        lockfile.locked.schema_id == schema_id
        and lockfile.locked.operations_hash == hash_operations(operations_file_contents)
    )
