from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from api_diff_engine.diffing.change_set import ModifiedMethod
from api_diff_engine.diffing.config import DiffConfig, normalize_config
from api_diff_engine.documents.document import (
    get_operation,
    iter_operations,
)
from api_diff_engine.documents.equality import values_equal

logger = logging.getLogger(__name__)

EndpointDiff = Tuple[
    Dict[str, FrozenSet[str]],
    Dict[str, FrozenSet[str]],
    Dict[str, Tuple[ModifiedMethod, ...]],
]


def changed_fields(
    previous_operation: Mapping[str, Any],
    current_operation: Mapping[str, Any],
    fields: Iterable[str],
    key_order_sensitive: bool = False,
) -> Tuple[str, ...]:
    return tuple(
        sorted(
            field
            for field in fields
            if not values_equal(
                previous_operation.get(field),
                current_operation.get(field),
                key_order_sensitive,
            )
        )
    )


def _freeze(grouped: Dict[str, List[str]]) -> Dict[str, FrozenSet[str]]:
    return {path: frozenset(methods) for path, methods in grouped.items()}


def diff_endpoints(
    previous: Mapping[str, Any],
    current: Mapping[str, Any],
    config: Optional[DiffConfig] = None,
) -> EndpointDiff:
    config = normalize_config(config)
    fields = config.compared_fields
    added: Dict[str, List[str]] = {}
    removed: Dict[str, List[str]] = {}
    modified: Dict[str, List[ModifiedMethod]] = {}

    for path, method, operation in iter_operations(current):
        previous_operation = get_operation(previous, path, method)
        if previous_operation is None:
            added.setdefault(path, []).append(method)
            continue
        fields_changed = changed_fields(
            previous_operation, operation, fields, config.key_order_sensitive
        )
        if fields_changed:
            modified.setdefault(path, []).append(
                ModifiedMethod(method=method, changed_fields=fields_changed)
            )

    for path, method, _ in iter_operations(previous):
        if get_operation(current, path, method) is None:
            removed.setdefault(path, []).append(method)

    logger.debug(
        "Endpoint diff added=%s removed=%s modified=%s",
        sum(len(methods) for methods in added.values()),
        sum(len(methods) for methods in removed.values()),
        sum(len(entries) for entries in modified.values()),
    )
    return (
        _freeze(added),
        _freeze(removed),
        {path: tuple(entries) for path, entries in modified.items()},
    )
