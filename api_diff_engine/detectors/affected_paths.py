from __future__ import annotations

from typing import AbstractSet, Any, Dict, FrozenSet, Mapping, Optional

from api_diff_engine.diffing.change_set import EndpointKey
from api_diff_engine.diffing.config import DiffConfig, normalize_config
from api_diff_engine.documents.document import iter_operations
from api_diff_engine.resolver.references import collect_referenced_components


def find_affected_paths(
    current: Mapping[str, Any],
    changed_components: AbstractSet[str],
    config: Optional[DiffConfig] = None,
) -> Dict[EndpointKey, FrozenSet[str]]:
    if not changed_components:
        return {}
    config = normalize_config(config)
    affected: Dict[EndpointKey, FrozenSet[str]] = {}
    for path, method, operation in iter_operations(current):
        used = collect_referenced_components(
            operation, current, identity=config.component_identity
        )
        triggered = used & changed_components
        if triggered:
            affected[(path, method)] = frozenset(triggered)
    return affected
