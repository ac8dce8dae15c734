"""
Script: tests/git_repo.py
What: Small helper that builds throwaway git repositories for tests.
Doing: Runs the real `git` binary in a temp directory with a fixed identity.
Why: Change detection depends on real diff/rename behavior, which mocks would hide.
Goal: Keep git-backed tests short and readable.
"""

from __future__ import annotations

import shutil
import subprocess
import tempfile
from pathlib import Path


GIT_AVAILABLE = shutil.which("git") is not None

# Fixed identity and no signing so commits work on any machine.
GIT_CONFIG = [
    "-c",
    "user.name=CI Test",
    "-c",
    "user.email=ci-test@example.invalid",
    "-c",
    "commit.gpgsign=false",
    "-c",
    "core.autocrlf=false",
]

IMAGE_DIRECTORIES = ("act-runner", "helm-deploy", "rust-ci-runner")


class TempGitRepo:
    def __init__(self) -> None:
        self._temp_dir = tempfile.TemporaryDirectory()
        self.path = Path(self._temp_dir.name)
        self.git("init", "-q")

    @property
    def cwd(self) -> str:
        return str(self.path)

    def cleanup(self) -> None:
        self._temp_dir.cleanup()

    def git(self, *args: str) -> str:
        result = subprocess.run(
            ["git", *GIT_CONFIG, *args],
            cwd=self.path,
            check=True,
            text=True,
            capture_output=True,
        )
        return result.stdout

    def write(self, relative_path: str, content: str = "FROM scratch\n") -> None:
        target = self.path / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")

    def append(self, relative_path: str, line: str) -> None:
        target = self.path / relative_path
        with target.open("a", encoding="utf-8") as handle:
            handle.write(line + "\n")

    def remove(self, relative_path: str) -> None:
        self.git("rm", "-r", "-q", relative_path)

    def move(self, source: str, destination: str) -> None:
        (self.path / destination).parent.mkdir(parents=True, exist_ok=True)
        self.git("mv", source, destination)

    def commit(self, message: str) -> str:
        """Stage everything, commit, and return the new commit SHA."""
        self.git("add", "-A")
        self.git("commit", "-q", "--allow-empty", "-m", message)
        return self.git("rev-parse", "HEAD").strip()


def seed_image_repo(repo: TempGitRepo) -> str:
    """Create the usual `ops/docker/<image>/Dockerfile` layout and commit it."""
    repo.write("README.md", "# images\n")
    repo.write("ops/docker/README.md", "# docker images\n")
    for name in IMAGE_DIRECTORIES:
        repo.write(f"ops/docker/{name}/Dockerfile", f"FROM debian:bookworm-slim\nLABEL name={name}\n")
    return repo.commit("initial images")
