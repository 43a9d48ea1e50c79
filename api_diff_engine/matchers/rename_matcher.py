from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Set, Tuple

from rapidfuzz import fuzz

from api_diff_engine.diffing.change_set import ChangeSet, EndpointKey, RenamedPath
from api_diff_engine.diffing.config import DiffConfig, normalize_config
from api_diff_engine.documents.document import iter_operations
from api_diff_engine.documents.equality import values_equal

logger = logging.getLogger(__name__)

# compared only when both sides carry a non-empty value
TEXT_FIELDS = ("summary", "description")

Endpoint = Tuple[str, str, Mapping[str, Any]]


def path_similarity(a: str, b: str) -> float:
    if not a or not b:
        return 0.0
    return fuzz.ratio(a, b) / 100.0


def _field_matches(
    field: str,
    removed_op: Mapping[str, Any],
    added_op: Mapping[str, Any],
    config: DiffConfig,
) -> bool:
    left = removed_op.get(field)
    right = added_op.get(field)
    if field in TEXT_FIELDS:
        return bool(left) and left == right
    return values_equal(left, right, config.key_order_sensitive)


def score_rename(
    removed_op: Mapping[str, Any],
    added_op: Mapping[str, Any],
    config: Optional[DiffConfig] = None,
) -> Optional[Tuple[int, Dict[str, int]]]:
    """Score a removed/added operation pair, or None when operationIds differ."""
    config = normalize_config(config)
    operation_id = removed_op.get("operationId")
    if not operation_id or operation_id != added_op.get("operationId"):
        return None
    breakdown = {
        field: weight
        for field, weight in config.rename.weights.items()
        if _field_matches(field, removed_op, added_op, config)
    }
    return sum(breakdown.values()), breakdown


def _endpoints(
    spec: Mapping[str, Any], selected: Mapping[str, FrozenSet[str]]
) -> List[Endpoint]:
    return [
        (path, method, operation)
        for path, method, operation in iter_operations(spec)
        if method in selected.get(path, ())
    ]


def _candidates(
    removed_endpoints: List[Endpoint],
    added_endpoints: List[Endpoint],
    config: DiffConfig,
) -> List[Dict[str, Any]]:
    candidates: List[Dict[str, Any]] = []
    for removed_index, (old_path, method, removed_op) in enumerate(removed_endpoints):
        for added_index, (new_path, added_method, added_op) in enumerate(
            added_endpoints
        ):
            if added_method != method:
                continue
            scored = score_rename(removed_op, added_op, config)
            if scored is None:
                continue
            score, breakdown = scored
            if score < config.rename.threshold:
                continue
            candidates.append(
                {
                    "old_path": old_path,
                    "new_path": new_path,
                    "method": method,
                    "score": score,
                    "breakdown": breakdown,
                    "path_similarity": path_similarity(old_path, new_path),
                    "removed_index": removed_index,
                    "added_index": added_index,
                }
            )
    return candidates


def _group_candidates(
    candidates: List[Dict[str, Any]], path_field: str
) -> Dict[EndpointKey, List[Dict[str, Any]]]:
    grouped: Dict[EndpointKey, List[Dict[str, Any]]] = {}
    for candidate in candidates:
        key = (candidate[path_field], candidate["method"])
        grouped.setdefault(key, []).append(candidate)
    return grouped


def _warn_on_ties(candidates: List[Dict[str, Any]]) -> None:
    sides = (("old_path", "new_path"), ("new_path", "old_path"))
    for path_field, other_field in sides:
        grouped = _group_candidates(candidates, path_field)
        for (path, method), options in grouped.items():
            top_score = max(option["score"] for option in options)
            tied = [
                option[other_field] for option in options if option["score"] == top_score
            ]
            if len(tied) > 1:
                logger.warning(
                    "Ambiguous rename method=%s %s=%s score=%s candidates=%s",
                    method,
                    path_field,
                    path,
                    top_score,
                    tied,
                )


def match_endpoint_renames(
    change_set: ChangeSet,
    previous: Mapping[str, Any],
    current: Mapping[str, Any],
    config: Optional[DiffConfig] = None,
) -> List[Dict[str, Any]]:
    config = normalize_config(config)
    if not change_set.removed or not change_set.added:
        return []
    removed_endpoints = _endpoints(previous, change_set.removed)
    added_endpoints = _endpoints(current, change_set.added)
    candidates = _candidates(removed_endpoints, added_endpoints, config)
    if not candidates:
        return []
    _warn_on_ties(candidates)

    if config.rename.strategy == "best_match":
        candidates.sort(
            key=lambda c: (
                -c["score"],
                -c["path_similarity"],
                c["removed_index"],
                c["added_index"],
            )
        )

    matches: List[Dict[str, Any]] = []
    used_removed: Set[int] = set()
    used_added: Set[int] = set()
    for candidate in candidates:
        if (
            candidate["removed_index"] in used_removed
            or candidate["added_index"] in used_added
        ):
            continue
        used_removed.add(candidate["removed_index"])
        used_added.add(candidate["added_index"])
        matches.append(candidate)
    return matches


def _without(
    grouped: Mapping[str, FrozenSet[str]], taken: Set[EndpointKey]
) -> Dict[str, FrozenSet[str]]:
    remaining: Dict[str, FrozenSet[str]] = {}
    for path, methods in grouped.items():
        left = frozenset(method for method in methods if (path, method) not in taken)
        if left:
            remaining[path] = left
    return remaining


def apply_renames(change_set: ChangeSet, matches: List[Dict[str, Any]]) -> ChangeSet:
    if not matches:
        return change_set
    grouped: Dict[str, Dict[str, Set[str]]] = {}
    for old_path, targets in change_set.renamed.items():
        for target in targets:
            grouped.setdefault(old_path, {}).setdefault(target.new_path, set()).update(
                target.methods
            )
    for match in matches:
        grouped.setdefault(match["old_path"], {}).setdefault(
            match["new_path"], set()
        ).add(match["method"])

    renamed = {
        old_path: tuple(
            RenamedPath(new_path=new_path, methods=frozenset(methods))
            for new_path, methods in targets.items()
        )
        for old_path, targets in grouped.items()
    }
    return replace(
        change_set,
        added=_without(
            change_set.added, {(m["new_path"], m["method"]) for m in matches}
        ),
        removed=_without(
            change_set.removed, {(m["old_path"], m["method"]) for m in matches}
        ),
        renamed=renamed,
    )


def match_renames(
    change_set: ChangeSet,
    previous: Mapping[str, Any],
    current: Mapping[str, Any],
    config: Optional[DiffConfig] = None,
) -> ChangeSet:
    matches = match_endpoint_renames(change_set, previous, current, config)
    if matches:
        logger.debug("Rename matches=%s", len(matches))
    return apply_renames(change_set, matches)
