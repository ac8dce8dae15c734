from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from docker_ci.common import (
    CiToolError,
    RevisionResolutionError,
    git_object_type,
    git_resolve_commit,
    normalize_owner,
    optional_env,
    require_env,
    run_cmd,
    write_github_outputs,
)
from git_repo import GIT_AVAILABLE, TempGitRepo, seed_image_repo


class EnvTests(unittest.TestCase):
    def test_require_env_rejects_empty_value(self) -> None:
        with mock.patch.dict(os.environ, {"DOCKER_CI_TEST_VALUE": ""}):
            with self.assertRaises(CiToolError):
                require_env("DOCKER_CI_TEST_VALUE")

    def test_optional_env_default(self) -> None:
        with mock.patch.dict(os.environ, {}, clear=True):
            self.assertEqual(optional_env("DOCKER_CI_TEST_VALUE", "fallback"), "fallback")

    def test_normalize_owner(self) -> None:
        self.assertEqual(normalize_owner("Webgrip"), "webgrip")


class WriteGithubOutputsTests(unittest.TestCase):
    def test_single_and_multiline_values(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            output_path = Path(temp_dir) / "out"
            with mock.patch.dict(os.environ, {"GITHUB_OUTPUT": str(output_path)}):
                write_github_outputs({"any_changed": "true", "tags": "a:latest\na:sha"})

            lines = output_path.read_text(encoding="utf-8").splitlines()
            self.assertEqual(lines[0], "any_changed=true")
            self.assertTrue(lines[1].startswith("tags<<ghadelimiter_"))
            self.assertEqual(lines[2:4], ["a:latest", "a:sha"])
            self.assertEqual(lines[4], lines[1].split("<<", 1)[1])

    def test_requires_output_file(self) -> None:
        with mock.patch.dict(os.environ, {"GITHUB_OUTPUT": ""}):
            with self.assertRaises(CiToolError):
                write_github_outputs({"matrix": "[]"})


class RunCmdTests(unittest.TestCase):
    def test_missing_binary_is_a_tool_error(self) -> None:
        with self.assertRaises(CiToolError):
            run_cmd(["docker-ci-definitely-not-a-command"])


@unittest.skipUnless(GIT_AVAILABLE, "git is not installed")
class GitHelperTests(unittest.TestCase):
    def setUp(self) -> None:
        self.repo = TempGitRepo()
        self.addCleanup(self.repo.cleanup)
        self.head = seed_image_repo(self.repo)

    def test_resolves_symbolic_revision(self) -> None:
        self.assertEqual(git_resolve_commit("HEAD", cwd=self.repo.cwd), self.head)

    def test_unresolvable_revision(self) -> None:
        with self.assertRaises(RevisionResolutionError):
            git_resolve_commit("HEAD~5", cwd=self.repo.cwd)

    def test_missing_working_directory(self) -> None:
        missing = str(self.repo.path / "missing")
        with self.assertRaises(CiToolError) as ctx:
            git_resolve_commit("HEAD", cwd=missing)
        self.assertNotIsInstance(ctx.exception, RevisionResolutionError)
        self.assertIn("Working directory does not exist", str(ctx.exception))

    def test_object_types(self) -> None:
        self.assertEqual(git_object_type(self.head, "ops/docker", cwd=self.repo.cwd), "tree")
        self.assertEqual(git_object_type(self.head, "README.md", cwd=self.repo.cwd), "blob")
        self.assertEqual(git_object_type(self.head, "ops/missing", cwd=self.repo.cwd), "")


if __name__ == "__main__":
    unittest.main()
