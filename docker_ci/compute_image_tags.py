"""
Script: docker_ci/compute_image_tags.py
What: Computes the registry tags one matrix build job publishes.
Doing: Combines the lowercased namespace, the image basename, and the commit SHA into `latest` and SHA tags.
Why: Keeps the tag scheme in one tested place instead of inline workflow expressions.
Goal: Publish every image under a moving `latest` tag and an immutable commit tag.
"""

from __future__ import annotations

import argparse
import re

from docker_ci.common import CiToolError, normalize_owner, optional_env, write_github_outputs
from docker_ci.matrix_builder import validate_basename


MOVING_TAG = "latest"
# Docker tag grammar: first char word char, then up to 127 word chars, '.' or '-'.
TAG_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$")


def build_image_tags(*, namespace: str, basename: str, commit_sha: str) -> list[str]:
    """
    Return `[<namespace>/<basename>:latest, <namespace>/<basename>:<sha>]`.

    The namespace is the registry owner (for example the GitHub org), lowercased
    because registries reject uppercase repository names.
    """
    owner = normalize_owner(namespace.strip())
    if not owner:
        raise CiToolError("Image namespace must not be empty")
    validate_basename(basename)

    sha = commit_sha.strip()
    if not TAG_RE.match(sha):
        raise CiToolError(f"Commit identifier '{commit_sha}' is not a valid image tag")

    repository = f"{owner}/{basename}"
    return [f"{repository}:{MOVING_TAG}", f"{repository}:{sha}"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python3 -m docker_ci.cli compute-image-tags",
        description="Compute the latest and commit tags for one image.",
    )
    parser.add_argument("--basename", default=optional_env("IMAGE_BASENAME"))
    parser.add_argument(
        "--namespace",
        default=optional_env("IMAGE_NAMESPACE") or optional_env("GITHUB_REPOSITORY_OWNER"),
    )
    parser.add_argument("--sha", default=optional_env("GITHUB_SHA"))
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    if not args.basename:
        raise CiToolError("Missing image basename: pass --basename or set IMAGE_BASENAME")
    if not args.sha:
        raise CiToolError("Missing commit SHA: pass --sha or set GITHUB_SHA")

    tags = build_image_tags(namespace=args.namespace or "", basename=args.basename, commit_sha=args.sha)

    # Multi-line value; consumed as `docker-tags: ${{ steps.<id>.outputs.tags }}`.
    if optional_env("GITHUB_OUTPUT"):
        write_github_outputs({"tags": "\n".join(tags)})

    for tag in tags:
        print(tag)


if __name__ == "__main__":
    main()
