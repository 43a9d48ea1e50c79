from __future__ import annotations

import logging
from collections import deque
from typing import Any, Deque, Dict, FrozenSet, List, Mapping, Optional, Set

from api_diff_engine.diffing.config import DiffConfig, normalize_config
from api_diff_engine.documents.document import iter_components, lookup_definition
from api_diff_engine.documents.equality import values_equal
from api_diff_engine.resolver.references import (
    ComponentRef,
    collect_referenced_components,
    component_key,
)

logger = logging.getLogger(__name__)

_MISSING = object()


def _reference_sets(
    current: Mapping[str, Any], identity: str, follow_refs: bool
) -> Dict[str, Set[str]]:
    references: Dict[str, Set[str]] = {}
    for category, name, definition in iter_components(current):
        key = component_key(ComponentRef(category, name), identity)
        references.setdefault(key, set()).update(
            collect_referenced_components(
                definition, current, identity=identity, follow_refs=follow_refs
            )
        )
    return references


def find_directly_changed_components(
    previous: Mapping[str, Any],
    current: Mapping[str, Any],
    config: Optional[DiffConfig] = None,
) -> List[str]:
    config = normalize_config(config)
    changed: List[str] = []
    for category, name, definition in iter_components(current):
        previous_definition = lookup_definition(previous, category, name, _MISSING)
        if previous_definition is not _MISSING and values_equal(
            previous_definition, definition, config.key_order_sensitive
        ):
            continue
        key = component_key(ComponentRef(category, name), config.component_identity)
        if key not in changed:
            changed.append(key)
    return changed


def detect_changed_components(
    previous: Mapping[str, Any],
    current: Mapping[str, Any],
    config: Optional[DiffConfig] = None,
) -> FrozenSet[str]:
    config = normalize_config(config)
    direct = find_directly_changed_components(previous, current, config)
    if not direct:
        return frozenset()

    # single pass scans transitive references once per directly changed
    # component; closure walks direct edges until nothing new is marked
    references = _reference_sets(
        current, config.component_identity, not config.closure_propagation
    )
    marked: Set[str] = set(direct)
    queue: Deque[str] = deque(direct)
    while queue:
        changed_key = queue.popleft()
        for referrer, reached in references.items():
            if changed_key not in reached or referrer in marked:
                continue
            marked.add(referrer)
            if config.closure_propagation:
                queue.append(referrer)

    logger.debug(
        "Component changes direct=%s propagated=%s propagation=%s",
        len(direct),
        len(marked) - len(direct),
        config.propagation,
    )
    return frozenset(marked)
