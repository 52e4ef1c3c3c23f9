"""Run the project's pytest suite programmatically."""

from __future__ import annotations

from typing import Optional, Sequence

import pytest

DEFAULT_PYTEST_ARGS: tuple[str, ...] = ("-q", "tests")


def run_tests(args: Optional[Sequence[str]] = None) -> int:
    """Run pytest with ``args`` (default ``-q tests``) and return the exit code."""

    pytest_args = list(args) if args is not None else list(DEFAULT_PYTEST_ARGS)
    return pytest.main(pytest_args)


def run_streaming_suite() -> int:
    """Only the extractor, orchestrator and consumer tests."""

    return run_tests(["-q", "tests", "-k", "json_stream or streaming or sse_consumer"])


if __name__ == "__main__":  # pragma: no cover - manual execution utility
    raise SystemExit(run_tests())
