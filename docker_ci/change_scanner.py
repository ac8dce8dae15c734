"""
Script: docker_ci/change_scanner.py
What: Finds which image directories under a watched root changed between two commits.
Doing: Resolves both revisions, diffs them with git, and keeps the first path segment below the root.
Why: Lets the image workflow rebuild only the images whose sources actually changed.
Goal: Produce a deterministic, deduplicated set of changed image directory names.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable
from dataclasses import dataclass

from docker_ci.common import (
    InvalidRootError,
    git_diff_name_status,
    git_list_subdirectories,
    git_object_type,
    git_resolve_commit,
)


@dataclass(frozen=True)
class FileChange:
    """One `git diff --name-status` record."""

    status: str  # 'A', 'M', 'D', 'R' (renamed), 'C' (copied), 'T' (type change)
    path: str
    old_path: str | None = None  # set for renames and copies

    def touched_paths(self) -> list[str]:
        # A copy leaves its source untouched, a rename removes it.
        if self.status == "R" and self.old_path:
            return [self.old_path, self.path]
        return [self.path]


def normalize_root(watched_root: str) -> str:
    """
    Turn a user-supplied root into a clean repository-relative path.

    `./ops/docker/` becomes `ops/docker`; `.` and `` mean the repository root
    and become ``. Absolute paths and `..` are rejected because git tree paths
    are always relative to the repository root.
    """
    raw = watched_root.strip().replace("\\", "/")
    if raw.startswith("/"):
        raise InvalidRootError(f"Watched root must be repository-relative: {watched_root}")
    parts = [part for part in raw.split("/") if part not in ("", ".")]
    if ".." in parts:
        raise InvalidRootError(f"Watched root must not contain '..': {watched_root}")
    return "/".join(parts)


def parse_name_status(output: str) -> list[FileChange]:
    """
    Parse NUL-separated `git diff --name-status -z` output.

    Record layout is `STATUS\\0PATH\\0` or, for renames/copies,
    `STATUS\\0OLD\\0NEW\\0`. Similarity scores (`R087`) are dropped.
    """
    tokens = output.split("\0")
    if tokens and tokens[-1] == "":
        tokens.pop()

    changes: list[FileChange] = []
    index = 0
    while index < len(tokens):
        status = tokens[index].strip()[:1]
        if status in ("R", "C"):
            if index + 2 >= len(tokens):
                break
            changes.append(
                FileChange(status=status, path=tokens[index + 2], old_path=tokens[index + 1])
            )
            index += 3
        else:
            if index + 1 >= len(tokens):
                break
            changes.append(FileChange(status=status, path=tokens[index + 1]))
            index += 2
    return changes


def _relative_to_root(path: str, root: str) -> str | None:
    if not root:
        return path
    prefix = f"{root}/"
    if not path.startswith(prefix):
        return None
    return path[len(prefix):]


def first_level_directory(path: str, root: str) -> str | None:
    """
    Return the directory name right below `root` that contains `path`.

    Returns None for paths outside the root and for files sitting directly
    in the root (those are not part of any image build context).
    """
    relative = _relative_to_root(path, root)
    if not relative or "/" not in relative:
        return None
    return relative.split("/", 1)[0]


def is_root_level_file(path: str, root: str) -> bool:
    """True for a file directly inside `root`, like `ops/docker/README.md`."""
    relative = _relative_to_root(path, root)
    return bool(relative) and "/" not in relative


def changed_directory_names(changes: Iterable[FileChange], root: str) -> set[str]:
    """Collect distinct first-level directory names touched by `changes`."""
    names: set[str] = set()
    for change in changes:
        for path in change.touched_paths():
            name = first_level_directory(path, root)
            if name:
                names.add(name)
    return names


def touches_root_level_file(changes: Iterable[FileChange], root: str) -> bool:
    return any(
        is_root_level_file(path, root) for change in changes for path in change.touched_paths()
    )


def _require_root_tree(head_sha: str, root: str, *, cwd: str | None) -> None:
    object_type = git_object_type(head_sha, root, cwd=cwd)
    shown_root = root or "."
    if not object_type:
        raise InvalidRootError(f"Watched root '{shown_root}' does not exist at {head_sha}")
    if object_type != "tree":
        raise InvalidRootError(f"Watched root '{shown_root}' is a {object_type}, not a directory")


def list_image_directories(
    *,
    watched_root: str,
    head_revision: str = "HEAD",
    cwd: str | None = None,
) -> list[str]:
    """Return every first-level directory under the root at `head_revision`, sorted."""
    root = normalize_root(watched_root)
    head_sha = git_resolve_commit(head_revision, cwd=cwd)
    _require_root_tree(head_sha, root, cwd=cwd)
    return sorted(git_list_subdirectories(head_sha, root, cwd=cwd))


def scan_changed_directories(
    *,
    base_revision: str,
    watched_root: str,
    head_revision: str = "HEAD",
    cwd: str | None = None,
    rebuild_all_on_root_change: bool = False,
) -> set[str]:
    """
    Compute the set of image directories changed between two revisions.

    Both revisions must resolve to commits (`RevisionResolutionError`) and the
    root must be a directory at the head revision (`InvalidRootError`).

    Root-level file changes are ignored unless `rebuild_all_on_root_change`
    is set, in which case they pull in every directory present at head.
    Deleted directories are still reported so the failure shows up in the
    build step instead of being hidden here.
    """
    root = normalize_root(watched_root)
    base_sha = git_resolve_commit(base_revision, cwd=cwd)
    head_sha = git_resolve_commit(head_revision, cwd=cwd)
    _require_root_tree(head_sha, root, cwd=cwd)

    print(f"Diffing {base_sha}..{head_sha} under '{root or '.'}'", file=sys.stderr)
    raw_diff = git_diff_name_status(base_sha, head_sha, pathspec=root, cwd=cwd)
    changes = parse_name_status(raw_diff)
    names = changed_directory_names(changes, root)
    print(f"Changed files under root: {len(changes)}", file=sys.stderr)

    if rebuild_all_on_root_change and touches_root_level_file(changes, root):
        print("Root-level file changed; selecting every image directory.", file=sys.stderr)
        names.update(git_list_subdirectories(head_sha, root, cwd=cwd))

    return names

