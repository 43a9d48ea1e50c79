from __future__ import annotations

from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Dict, FrozenSet, Mapping, Tuple

EndpointKey = Tuple[str, str]


@dataclass(frozen=True)
class ModifiedMethod:
    method: str
    changed_fields: Tuple[str, ...]


@dataclass(frozen=True)
class RenamedPath:
    new_path: str
    methods: FrozenSet[str]


@dataclass(frozen=True)
class ChangeSet:
    """Classified differences between a previous and a current document.

    Each pipeline stage returns a new instance built with
    ``dataclasses.replace``. Mapping fields are copied into read-only
    proxies, so an instance cannot be changed once it exists.
    """

    added: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    removed: Mapping[str, FrozenSet[str]] = field(default_factory=dict)
    modified: Mapping[str, Tuple[ModifiedMethod, ...]] = field(default_factory=dict)
    renamed: Mapping[str, Tuple[RenamedPath, ...]] = field(default_factory=dict)
    changed_components: FrozenSet[str] = frozenset()
    affected_by_components: Mapping[EndpointKey, FrozenSet[str]] = field(
        default_factory=dict
    )

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, Mapping):
                object.__setattr__(self, item.name, MappingProxyType(dict(value)))

    @property
    def is_empty(self) -> bool:
        return not (
            self.added
            or self.removed
            or self.modified
            or self.renamed
            or self.changed_components
            or self.affected_by_components
        )

    def modified_methods(self, path: str) -> FrozenSet[str]:
        return frozenset(entry.method for entry in self.modified.get(path, ()))

    def rename_targets(self) -> FrozenSet[EndpointKey]:
        return frozenset(
            (target.new_path, method)
            for targets in self.renamed.values()
            for target in targets
            for method in target.methods
        )

    def counts(self) -> Dict[str, int]:
        return {
            "added": sum(len(methods) for methods in self.added.values()),
            "removed": sum(len(methods) for methods in self.removed.values()),
            "modified": sum(len(entries) for entries in self.modified.values()),
            "renamed": len(self.rename_targets()),
            "changed_components": len(self.changed_components),
            "affected_by_components": len(self.affected_by_components),
        }
