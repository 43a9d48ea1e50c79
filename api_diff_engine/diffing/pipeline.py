from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping, Optional

from api_diff_engine.detectors.affected_paths import find_affected_paths
from api_diff_engine.detectors.components import detect_changed_components
from api_diff_engine.detectors.endpoints import diff_endpoints
from api_diff_engine.diffing.change_set import ChangeSet
from api_diff_engine.diffing.config import DiffConfig, normalize_config
from api_diff_engine.documents.document import ensure_document
from api_diff_engine.matchers.rename_matcher import match_renames

logger = logging.getLogger(__name__)


def diff(
    previous: Mapping[str, Any],
    current: Mapping[str, Any],
    config: Optional[DiffConfig | Mapping[str, Any]] = None,
) -> ChangeSet:
    config = normalize_config(config)
    ensure_document(previous, "previous document")
    ensure_document(current, "current document")

    changed_components = detect_changed_components(previous, current, config)
    change_set = replace(
        ChangeSet(),
        changed_components=changed_components,
        affected_by_components=find_affected_paths(
            current, changed_components, config
        ),
    )

    added, removed, modified = diff_endpoints(previous, current, config)
    change_set = replace(change_set, added=added, removed=removed, modified=modified)
    change_set = match_renames(change_set, previous, current, config)

    counts = change_set.counts()
    logger.info(
        "API diff summary added=%s removed=%s modified=%s renamed=%s "
        "changed_components=%s affected=%s",
        counts["added"],
        counts["removed"],
        counts["modified"],
        counts["renamed"],
        counts["changed_components"],
        counts["affected_by_components"],
    )
    return change_set
