"""Raw trace persistence."""

from __future__ import annotations

import gzip
import os
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path

from .config import expand_path


@dataclass(frozen=True)
class SavedFile:
    filename: str


def resolve_path(path: str) -> Path:
    p = Path(expand_path(path))
    return p if p.is_absolute() else Path.cwd() / p


def save_file(data: bytes, path: str) -> SavedFile:
    """Write `data` to `path`; gzip-compress when the path ends with `.gz`.

    Relative paths resolve against the working directory. The write goes through a
    temporary sibling file and is renamed into place, so readers never see a partial trace.
    """
    target = resolve_path(path)
    target.parent.mkdir(parents=True, exist_ok=True)

    payload = gzip.compress(data) if target.name.endswith(".gz") else data
    tmp = target.with_name(target.name + ".tmp")
    try:
        tmp.write_bytes(payload)
        os.replace(tmp, target)
    except OSError:
        with suppress(OSError):
            tmp.unlink(missing_ok=True)
        raise
    return SavedFile(filename=str(target))


__all__ = ["SavedFile", "resolve_path", "save_file"]
