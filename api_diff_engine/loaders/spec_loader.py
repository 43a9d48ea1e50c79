import json
from pathlib import Path
from typing import Any, Mapping

import yaml

from api_diff_engine.documents.document import ensure_document
from api_diff_engine.errors import InvalidDocumentError

YAML_SUFFIXES = {".yaml", ".yml"}


def load_spec(path: Path) -> Mapping[str, Any]:
    text = path.read_text(encoding="utf-8")
    try:
        if path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise InvalidDocumentError(f"Could not parse {path}") from exc
    return ensure_document(data, str(path))
