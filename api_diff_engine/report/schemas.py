from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from api_diff_engine.diffing.change_set import ChangeSet


class EndpointMethods(BaseModel):
    path: str
    methods: List[str]


class ModifiedEndpoint(BaseModel):
    path: str
    method: str
    changed_fields: List[str]


class RenamedEndpoint(BaseModel):
    old_path: str
    new_path: str
    methods: List[str]


class AffectedEndpoint(BaseModel):
    path: str
    method: str
    components: List[str]


class ChangeSetPayload(BaseModel):
    added: List[EndpointMethods] = Field(default_factory=list)
    removed: List[EndpointMethods] = Field(default_factory=list)
    modified: List[ModifiedEndpoint] = Field(default_factory=list)
    renamed: List[RenamedEndpoint] = Field(default_factory=list)
    changed_components: List[str] = Field(default_factory=list)
    affected_by_components: List[AffectedEndpoint] = Field(default_factory=list)


def build_change_set_payload(change_set: ChangeSet) -> ChangeSetPayload:
    return ChangeSetPayload(
        added=[
            EndpointMethods(path=path, methods=sorted(methods))
            for path, methods in sorted(change_set.added.items())
        ],
        removed=[
            EndpointMethods(path=path, methods=sorted(methods))
            for path, methods in sorted(change_set.removed.items())
        ],
        modified=[
            ModifiedEndpoint(
                path=path,
                method=entry.method,
                changed_fields=sorted(entry.changed_fields),
            )
            for path in sorted(change_set.modified)
            for entry in sorted(change_set.modified[path], key=lambda m: m.method)
        ],
        renamed=[
            RenamedEndpoint(
                old_path=old_path,
                new_path=target.new_path,
                methods=sorted(target.methods),
            )
            for old_path in sorted(change_set.renamed)
            for target in sorted(
                change_set.renamed[old_path], key=lambda t: t.new_path
            )
        ],
        changed_components=sorted(change_set.changed_components),
        affected_by_components=[
            AffectedEndpoint(path=path, method=method, components=sorted(components))
            for (path, method), components in sorted(
                change_set.affected_by_components.items()
            )
        ],
    )
