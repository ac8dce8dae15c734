"""
Script: docker_ci package
What: Holds Python workflow helpers for the Dockerfile image collection.
Doing: Groups CLI entrypoints and shared utility code in one importable package.
Why: Keeps change detection and tagging logic readable and testable instead of hiding it in workflow YAML.
Goal: Provide a clear, maintainable home for change-scoped image build logic.
"""
