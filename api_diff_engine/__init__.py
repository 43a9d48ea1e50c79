"""Change detection and release notes for OpenAPI descriptions."""

from api_diff_engine.diffing.change_set import ChangeSet, ModifiedMethod, RenamedPath
from api_diff_engine.diffing.config import DiffConfig, get_diff_config
from api_diff_engine.diffing.pipeline import diff
from api_diff_engine.errors import InvalidDocumentError
from api_diff_engine.report.release_notes import render

__all__ = [
    "ChangeSet",
    "DiffConfig",
    "InvalidDocumentError",
    "ModifiedMethod",
    "RenamedPath",
    "diff",
    "get_diff_config",
    "render",
]
