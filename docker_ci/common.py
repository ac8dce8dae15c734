"""
Script: docker_ci/common.py
What: Shared helper functions used by all `docker_ci` modules.
Doing: Wraps env reads, command execution, git object lookups, and step output writes.
Why: Avoids duplicated helper code.
Goal: Keep behavior consistent across all helper modules.
"""

from __future__ import annotations

import os
import subprocess
import uuid
from typing import Mapping, Sequence


class CiToolError(RuntimeError):
    """Raised when a workflow helper script hits a known error condition."""

    exit_code = 1


class RevisionResolutionError(CiToolError):
    """Raised when a base or head revision does not resolve to a commit."""

    exit_code = 3


class InvalidRootError(CiToolError):
    """Raised when the watched root is not a directory at the head revision."""

    exit_code = 4


class InvalidBasenameError(CiToolError):
    """Raised when a directory name cannot be used as an image name segment."""

    exit_code = 5


# GitHub sends this as the "before" SHA when a push creates a new branch.
NULL_SHA = "0" * 40


def require_env(name: str) -> str:
    """Return a required environment variable or raise a clear error."""
    value = os.environ.get(name)
    if value is None or value == "":
        raise CiToolError(f"Missing required environment variable: {name}")
    return value


def optional_env(name: str, default: str = "") -> str:
    """Return an environment variable with a fallback default."""
    return os.environ.get(name, default)


def require_directory(path: str | None) -> None:
    """Raise when a working directory was given but does not exist."""
    if path is not None and not os.path.isdir(path):
        raise CiToolError(f"Working directory does not exist: {path}")


def run_cmd(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    cwd: str | None = None,
    errors: str = "strict",
) -> str:
    """
    Run a command and return stdout, raising a readable error on failure.

    `errors` is the decode error handler for the output. `surrogateescape`
    keeps bytes that are not valid UTF-8 (for example in file names) instead
    of failing while decoding.
    """
    require_directory(cwd)
    try:
        result = subprocess.run(
            list(args),
            check=True,
            text=True,
            errors=errors,
            capture_output=capture_output,
            cwd=cwd,
        )
    except subprocess.CalledProcessError as exc:
        stderr = (exc.stderr or "").strip()
        stdout = (exc.stdout or "").strip()
        details = stderr or stdout or str(exc)
        raise CiToolError(f"Command failed: {' '.join(args)}\n{details}") from exc
    except FileNotFoundError as exc:
        raise CiToolError(f"Command not found: {args[0]}") from exc

    if not capture_output:
        return ""
    return result.stdout


def write_github_outputs(values: Mapping[str, str]) -> None:
    """
    Write step outputs for GitHub Actions.

    GitHub provides a file path in `GITHUB_OUTPUT`; writing `name=value` lines
    there makes that value available to later steps in the same job.
    Values that span lines use the `name<<DELIMITER` block form instead.
    """
    output_file = require_env("GITHUB_OUTPUT")
    with open(output_file, "a", encoding="utf-8") as handle:
        for key, value in values.items():
            if "\n" in value:
                delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
                handle.write(f"{key}<<{delimiter}\n{value}\n{delimiter}\n")
            else:
                handle.write(f"{key}={value}\n")


def normalize_owner(owner: str) -> str:
    """
    Normalize a GitHub owner/org for container image paths.

    Here, "normalize" means converting to lowercase.
    Example: `Webgrip` becomes `webgrip`, so image refs are consistent:
    `webgrip/rust-ci-runner:latest`.
    """
    return owner.lower()


def git(args: Sequence[str], *, cwd: str | None = None, errors: str = "strict") -> str:
    """Run one git subcommand and return its stdout."""
    return run_cmd(["git", *args], cwd=cwd, errors=errors)


def git_resolve_commit(revision: str, *, cwd: str | None = None) -> str:
    """
    Resolve a revision (branch, tag, SHA, `HEAD~1`, ...) to a full commit SHA.

    The `^{commit}` suffix makes git peel tags and reject trees/blobs.
    """
    if not revision:
        raise RevisionResolutionError("Empty revision cannot be resolved")
    # A missing checkout is a setup problem, not an unknown revision.
    require_directory(cwd)
    try:
        output = git(["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"], cwd=cwd)
    except CiToolError as exc:
        raise RevisionResolutionError(
            f"Cannot resolve revision '{revision}' to a commit. "
            "If this is a shallow clone, fetch more history (fetch-depth: 0)."
        ) from exc
    return output.strip()


def git_object_type(revision: str, path: str, *, cwd: str | None = None) -> str:
    """
    Return the git object type (`tree`, `blob`, ...) of `path` at `revision`.

    Returns an empty string when the path does not exist at that revision.
    An empty `path` means the root tree of the revision.
    """
    try:
        return git(["cat-file", "-t", f"{revision}:{path}"], cwd=cwd).strip()
    except CiToolError:
        return ""


def git_list_subdirectories(revision: str, path: str, *, cwd: str | None = None) -> list[str]:
    """List names of the immediate subdirectories of `path` at `revision`."""
    output = git(
        ["ls-tree", "-d", "--name-only", "-z", f"{revision}:{path}"],
        cwd=cwd,
        errors="surrogateescape",
    )
    return [name for name in output.split("\0") if name]


def git_diff_name_status(
    base_sha: str,
    head_sha: str,
    *,
    pathspec: str = "",
    cwd: str | None = None,
) -> str:
    """
    Return raw `git diff --name-status -z` output between two commits.

    `-M` turns delete+add pairs into rename records so both sides are visible.
    `-z` keeps unusual file names unquoted and unambiguous.
    """
    args = ["diff", "--name-status", "-z", "-M", base_sha, head_sha]
    if pathspec:
        args.extend(["--", pathspec])
    return git(args, cwd=cwd, errors="surrogateescape")
