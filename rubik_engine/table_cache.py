"""On-disk cache for the solver tables."""

from __future__ import annotations

import re
import zipfile
from pathlib import Path

import numpy as np

# Bump when the coordinate encoding or move order changes.
TABLE_FORMAT_VERSION = 1


class TableCache:
    FILE_PATTERN = re.compile(r"twophase_v(\d+)\.npz$")

    def __init__(self, cache_dir: str | Path = "tables"):
        self.dir = Path(cache_dir)

    @property
    def path(self) -> Path:
        return self.dir / f"twophase_v{TABLE_FORMAT_VERSION}.npz"

    def save(self, arrays: dict[str, np.ndarray]) -> Path:
        self.dir.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with open(tmp, "wb") as fh:
            np.savez_compressed(fh, format_version=np.int64(TABLE_FORMAT_VERSION), **arrays)
        tmp.replace(self.path)
        return self.path

    def stale_paths(self) -> list[Path]:
        """Cache files written by other table format versions."""
        out: list[Path] = []
        if not self.dir.is_dir():
            return out
        for p in self.dir.glob("twophase_v*.npz"):
            m = self.FILE_PATTERN.search(p.name)
            if m and int(m.group(1)) != TABLE_FORMAT_VERSION:
                out.append(p)
        return sorted(out)

    def load(self, expected: dict[str, tuple[int, ...]]) -> dict[str, np.ndarray] | None:
        """Return the cached arrays, or None when the file is missing or unusable.

        A file with another format version, missing tables or wrong shapes is
        ignored so the caller rebuilds and overwrites it.
        """
        path = self.path
        if not path.is_file():
            return None
        try:
            with np.load(path, allow_pickle=False) as data:
                if "format_version" not in data.files:
                    return None
                if int(np.asarray(data["format_version"]).reshape(-1)[0]) != TABLE_FORMAT_VERSION:
                    return None
                arrays: dict[str, np.ndarray] = {}
                for name, shape in expected.items():
                    if name not in data.files:
                        return None
                    arr = np.asarray(data[name])
                    if tuple(arr.shape) != tuple(shape):
                        return None
                    arrays[name] = arr
        except (OSError, ValueError, zipfile.BadZipFile):
            return None
        return arrays
