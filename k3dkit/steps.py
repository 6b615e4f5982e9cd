from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from .errors import BootstrapError
from .logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Step:
    name: str
    action: Callable[[], None]


def run_steps(workflow: str, steps: Iterable[Step]) -> list[str]:
    """Run steps in order, stopping at the first failure.

    Nothing is rolled back; the tree stays as the last completed step left it.
    Returns the names of the completed steps.
    """
    completed: list[str] = []
    for step in steps:
        logger.info(f"[{workflow}] {step.name}")
        try:
            step.action()
        except BootstrapError as error:
            logger.error(f"[{workflow}] {step.name} failed: {error}")
            raise
        completed.append(step.name)
    return completed


def replace_step(steps: list[Step], name: str, action: Callable[[], None]) -> list[Step]:
    """Return a copy of ``steps`` with the action of step ``name`` swapped out."""
    if name not in {step.name for step in steps}:
        raise KeyError(name)
    return [Step(step.name, action) if step.name == name else step for step in steps]
