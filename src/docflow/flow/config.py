"""Flow configuration."""
from __future__ import annotations

from dataclasses import dataclass, field

from docflow.document.path import Path


@dataclass(frozen=True)
class FlowConfig:
    """Switches controlling how a flow discovers and schedules tasks.

    Parameters
    ----------
    root:
        Path of the command whose tasks are run.  The root node itself is
        never a task.  Accepts a ``Path`` or a dotted string.
    infer_tasks:
        When ``False`` (the default) only the direct children of ``root``
        are task candidates.  When ``True`` the whole subtree is searched
        and any struct carrying a kind discriminator is a task.
    tolerate_incomplete:
        When ``False`` (the default) a task whose referenced inputs are
        still incomplete when it is about to run fails instead of being
        handed placeholders.
    """

    root: Path = field(default_factory=Path)
    infer_tasks: bool = False
    tolerate_incomplete: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "root", Path.of(self.root))
