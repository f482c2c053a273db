from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from harness.contracts.plan import VARIANTS, ExamplePlan, Variant

EXAMPLE_SUFFIX = ".rs"


def discover_examples(
    project_path: str | Path,
    *,
    examples_dir: str = "examples",
    variants: Sequence[Variant] = VARIANTS,
) -> ExamplePlan:
    """
    Build the plan for every example source directly under `<project>/<examples_dir>`.

    Examples are sorted by path and each one yields a job per variant, in the order given.
    """
    root = Path(project_path) / examples_dir
    if not root.is_dir():
        return ExamplePlan()

    sources = sorted(
        path for path in root.iterdir() if path.is_file() and path.suffix == EXAMPLE_SUFFIX
    )
    return ExamplePlan.from_examples(sources, variants=variants)
