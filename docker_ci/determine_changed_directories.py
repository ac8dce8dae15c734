"""
Script: docker_ci/determine_changed_directories.py
What: Prints the build matrix for image directories changed between two commits.
Doing: Scans the git diff under `--root`, builds `{path, basename}` entries, prints `{"include": [...]}`, and writes step outputs.
Why: Lets the Dockerfile workflow rebuild only changed images, in parallel.
Goal: Give the build job a ready-to-use `strategy.matrix` and a flag to skip it when nothing changed.
"""

from __future__ import annotations

import argparse
import json
import sys

from docker_ci.change_scanner import list_image_directories, scan_changed_directories
from docker_ci.common import NULL_SHA, optional_env, write_github_outputs
from docker_ci.matrix_builder import build_matrix, matrix_include, serialize_matrix


def default_base_revision() -> str:
    """
    Pick the previous revision when `--base` is not given.

    On push events GitHub exposes the pre-push commit as `GITHUB_EVENT_BEFORE`
    (exported by the workflow from `github.event.before`). A brand-new branch
    reports the all-zero SHA, so fall back to the parent of HEAD.
    """
    before = optional_env("GITHUB_EVENT_BEFORE").strip()
    if before and before != NULL_SHA:
        return before
    return "HEAD~1"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python3 -m docker_ci.cli determine-changed-directories",
        description="Print a build matrix of changed directories under a watched root.",
    )
    parser.add_argument("--root", required=True, help="Watched root, for example ops/docker.")
    parser.add_argument("--base", default=None, help="Base revision (default: previous push commit or HEAD~1).")
    parser.add_argument("--head", default="HEAD", help="Head revision (default: HEAD).")
    parser.add_argument("--repo", default=".", help="Repository working directory (default: .).")
    parser.add_argument(
        "--rebuild-all-on-root-change",
        action="store_true",
        help="Select every directory when a file directly in the root changed.",
    )
    parser.add_argument(
        "--all",
        action="store_true",
        dest="select_all",
        help="Ignore the diff and select every directory present at --head.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)

    if args.select_all:
        names = list_image_directories(watched_root=args.root, head_revision=args.head, cwd=args.repo)
        print(f"Selecting all {len(names)} directories under {args.root}", file=sys.stderr)
    else:
        base_revision = args.base or default_base_revision()
        print(f"Base revision: {base_revision}, head revision: {args.head}", file=sys.stderr)
        names = scan_changed_directories(
            base_revision=base_revision,
            head_revision=args.head,
            watched_root=args.root,
            cwd=args.repo,
            rebuild_all_on_root_change=args.rebuild_all_on_root_change,
        )

    # Validation happens here, before anything is printed or written.
    entries = build_matrix(names, args.root)

    if optional_env("GITHUB_OUTPUT"):
        # `matrix` holds the bare list; the workflow wraps it as `include: ${{ fromJson(...) }}`.
        write_github_outputs(
            {
                "matrix": json.dumps(matrix_include(entries)),
                "any_changed": "true" if entries else "false",
            }
        )

    if entries:
        print(f"Changed images: {' '.join(entry.basename for entry in entries)}", file=sys.stderr)
    else:
        print("No image directories changed; nothing to build.", file=sys.stderr)

    print(serialize_matrix(entries))


if __name__ == "__main__":
    main()
