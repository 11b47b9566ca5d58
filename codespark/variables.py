"""Variable store — host-side cache of the learner's bound names."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VariableBinding:
    name: str
    value: str


@dataclass(frozen=True)
class VariableChanges:
    """Names created or whose display value changed in one snapshot."""

    created: tuple[str, ...] = field(default_factory=tuple)
    updated: tuple[str, ...] = field(default_factory=tuple)

    def is_new(self, name: str) -> bool:
        return name in self.created

    @property
    def changed(self) -> tuple[str, ...]:
        return self.created + self.updated


class VariableStore:
    """Mapping of name to display string, overwritten from executor snapshots.

    Keys are never removed by a snapshot: interpreter globals only grow
    within a run. :meth:`clear` is used when a run starts over.
    """

    def __init__(self):
        self._bindings: dict[str, VariableBinding] = {}

    def apply_snapshot(self, snapshot: dict[str, str]) -> VariableChanges:
        created: list[str] = []
        updated: list[str] = []
        for name, value in snapshot.items():
            existing = self._bindings.get(name)
            if existing is None:
                created.append(name)
            elif existing.value != value:
                updated.append(name)
            self._bindings[name] = VariableBinding(name=name, value=value)
        if created or updated:
            logger.debug("Variable store: created=%s updated=%s", created, updated)
        return VariableChanges(created=tuple(created), updated=tuple(updated))

    def get(self, name: str) -> str | None:
        binding = self._bindings.get(name)
        return binding.value if binding else None

    def bindings(self) -> list[VariableBinding]:
        return list(self._bindings.values())

    def as_dict(self) -> dict[str, str]:
        return {name: b.value for name, b in self._bindings.items()}

    def to_json(self) -> str:
        return json.dumps(self.as_dict())

    def clear(self) -> None:
        self._bindings.clear()

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)
