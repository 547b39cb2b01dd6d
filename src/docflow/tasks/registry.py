"""Registry mapping task kinds to runner classes.

A ``RunnerRegistry`` is an explicit object: the host builds one at
startup, registers built-in and plugin kinds against it, and hands it to
the engine.  Nothing is stored in module-level state.

Third-party packages contribute kinds through entry-points in the
``docflow.runners`` group; the entry-point name is the kind identifier.

Example
-------
Register a runner with the decorator::

    registry = RunnerRegistry()

    @registry.register("acme/deploy.Rollout", template={"target": TypeOf("string")})
    class Rollout(Runner):
        def run(self, ctx):
            ...

Load all installed plugins via entry-points::

    registry.load_entrypoints()

Look a kind up::

    entry = registry.lookup("acme/deploy.Rollout")
    runner = entry.create(value)
"""
from __future__ import annotations

import importlib.metadata
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from docflow.document.document import normalize
from docflow.flow.errors import RunnerNotFoundError
from docflow.tasks.base import Runner

logger = logging.getLogger(__name__)

ENTRYPOINT_GROUP = "docflow.runners"


class RunnerAlreadyRegisteredError(ValueError):
    """Raised when attempting to register a kind that already exists."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(
            f"Runner kind {kind!r} is already registered. "
            "Use a unique kind or explicitly deregister the existing entry first."
        )


@dataclass(frozen=True)
class RegistryEntry:
    """A registered task kind.

    Parameters
    ----------
    kind:
        The canonical kind identifier, e.g. ``"tool/exec.Run"``.
    runner_cls:
        The ``Runner`` subclass constructed for each task of this kind.
    template:
        The shape every task of this kind is unified with.
    """

    kind: str
    runner_cls: type[Runner]
    template: Mapping[str, Any] = field(default_factory=dict)

    def create(self, value: Mapping[str, Any]) -> Runner:
        """Construct a runner for one task."""
        return self.runner_cls(value)


class RunnerRegistry:
    """Table of task kinds available to a flow."""

    def __init__(self) -> None:
        self._entries: dict[str, RegistryEntry] = {}

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self, kind: str, template: Mapping[str, Any] | None = None
    ) -> Callable[[type[Runner]], type[Runner]]:
        """Return a class decorator that registers the decorated runner.

        Parameters
        ----------
        kind:
            The unique kind identifier.
        template:
            Expected task shape.  Defaults to the class's ``template``
            attribute.

        Raises
        ------
        RunnerAlreadyRegisteredError
            If ``kind`` is already in use.
        TypeError
            If the decorated class does not subclass ``Runner``.
        """

        def decorator(cls: type[Runner]) -> type[Runner]:
            self.register_class(kind, cls, template)
            return cls

        return decorator

    def register_class(
        self,
        kind: str,
        cls: type[Runner],
        template: Mapping[str, Any] | None = None,
    ) -> None:
        """Register ``cls`` under ``kind`` without decorator syntax."""
        if kind in self._entries:
            raise RunnerAlreadyRegisteredError(kind)
        if not (isinstance(cls, type) and issubclass(cls, Runner)):
            raise TypeError(
                f"Cannot register {cls!r} under {kind!r}: it must be a subclass of Runner."
            )
        shape = template if template is not None else cls.template
        self._entries[kind] = RegistryEntry(kind, cls, normalize(shape))
        logger.debug("Registered runner %r -> %s", kind, cls.__qualname__)

    def deregister(self, kind: str) -> None:
        """Remove a kind from the registry.

        Raises
        ------
        RunnerNotFoundError
            If ``kind`` is not registered.
        """
        if kind not in self._entries:
            raise RunnerNotFoundError(kind)
        del self._entries[kind]
        logger.debug("Deregistered runner %r", kind)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, kind: str) -> RegistryEntry | None:
        """Return the entry for ``kind``, or None if it is not registered."""
        return self._entries.get(kind)

    def get(self, kind: str) -> RegistryEntry:
        """Return the entry for ``kind``.

        Raises
        ------
        RunnerNotFoundError
            If no runner is registered under ``kind``.
        """
        entry = self._entries.get(kind)
        if entry is None:
            raise RunnerNotFoundError(kind)
        return entry

    def kinds(self) -> list[str]:
        """Return all registered kinds in alphabetical order."""
        return sorted(self._entries)

    def __contains__(self, kind: object) -> bool:
        return kind in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"RunnerRegistry(kinds={self.kinds()})"

    # ------------------------------------------------------------------
    # Entry-point loading
    # ------------------------------------------------------------------

    def load_entrypoints(self, group: str = ENTRYPOINT_GROUP) -> None:
        """Discover and register runners declared as package entry-points.

        Kinds that are already registered are skipped, so repeated calls
        are idempotent.  An entry-point that fails to import or is not a
        ``Runner`` subclass is logged and skipped.

        Example
        -------
        In a plugin package's ``pyproject.toml``::

            [project.entry-points."docflow.runners"]
            "acme/deploy.Rollout" = "acme_docflow.deploy:Rollout"
        """
        for ep in importlib.metadata.entry_points(group=group):
            if ep.name in self._entries:
                logger.debug("Entry-point %r already registered; skipping.", ep.name)
                continue
            try:
                cls = ep.load()
            except Exception:
                logger.exception(
                    "Failed to load entry-point %r from group %r; skipping.", ep.name, group
                )
                continue
            try:
                self.register_class(ep.name, cls)
            except (RunnerAlreadyRegisteredError, TypeError):
                logger.warning(
                    "Entry-point %r loaded but could not be registered; skipping.", ep.name
                )
