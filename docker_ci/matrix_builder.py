"""
Script: docker_ci/matrix_builder.py
What: Turns changed image directory names into a GitHub Actions job matrix.
Doing: Sorts names, validates them as image name segments, and builds `{path, basename}` entries.
Why: The build job fans out with `matrix.include`, one job per changed image.
Goal: Emit a stable matrix document, or fail loudly when a name is not a valid image name.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import PurePosixPath

from docker_ci.change_scanner import normalize_root
from docker_ci.common import InvalidBasenameError


# Docker path component: lowercase alphanumerics joined by "_", "__" or runs of "-".
IMAGE_NAME_SEGMENT_RE = re.compile(r"^[a-z0-9]+(?:(?:__|_|-+)[a-z0-9]+)*$")


@dataclass(frozen=True)
class MatrixEntry:
    path: str
    basename: str

    def as_dict(self) -> dict[str, str]:
        # Key order is part of the output format.
        return {"path": self.path, "basename": self.basename}


def is_valid_basename(name: str) -> bool:
    return bool(IMAGE_NAME_SEGMENT_RE.match(name))


def invalid_basename_error(names: list[str]) -> InvalidBasenameError:
    quoted = ", ".join(f"'{name}'" for name in names)
    return InvalidBasenameError(
        f"Not a valid image name segment: {quoted} "
        "(use lowercase letters and digits joined by '-', '_' or '__'); rename the directory."
    )


def validate_basename(name: str) -> str:
    """Return `name` unchanged, or raise if it cannot be used in an image name."""
    if not is_valid_basename(name):
        raise invalid_basename_error([name])
    return name


def entry_path(root: str, name: str) -> str:
    """Join a normalized root and a directory name (`ops/docker` + `x`)."""
    if not root:
        return name
    return str(PurePosixPath(root) / name)


def build_matrix(names: Iterable[str], watched_root: str) -> list[MatrixEntry]:
    """
    Build matrix entries for the given directory names.

    Every name is checked before any entry is produced, so a bad name never
    results in a partial matrix. All bad names are listed in one error.
    """
    root = normalize_root(watched_root)
    sorted_names = sorted(set(names))
    invalid_names = [name for name in sorted_names if not is_valid_basename(name)]
    if invalid_names:
        raise invalid_basename_error(invalid_names)

    return [MatrixEntry(path=entry_path(root, name), basename=name) for name in sorted_names]


def matrix_include(entries: Iterable[MatrixEntry]) -> list[dict[str, str]]:
    return [entry.as_dict() for entry in entries]


def matrix_document(entries: Iterable[MatrixEntry]) -> dict[str, list[dict[str, str]]]:
    """Wrap entries under `include` so the result can be used as `strategy.matrix`."""
    return {"include": matrix_include(entries)}


def serialize_matrix(entries: Iterable[MatrixEntry]) -> str:
    return json.dumps(matrix_document(entries))
