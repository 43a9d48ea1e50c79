from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

from api_diff_engine.diffing.change_set import ChangeSet
from api_diff_engine.diffing.config import DiffConfig, normalize_config
from api_diff_engine.documents.document import get_operation
from api_diff_engine.resolver.references import (
    REF_KEY,
    lookup_component,
    parse_component_ref,
    ref_targets,
    schema_references_component,
    split_component_key,
)

DETAILS_OPEN = (
    "\n<details><summary>Show more routes affected by component changes..."
    "</summary>\n\n"
)
DETAILS_CLOSE = "</details>\n"


def _resolve(spec: Mapping[str, Any], node: Any) -> Any:
    if not isinstance(node, Mapping):
        return node
    target = parse_component_ref(node.get(REF_KEY))
    if target is None:
        return node
    definition = lookup_component(spec, target)
    return definition if isinstance(definition, Mapping) else node


def _examples_use(examples: Any, name: str, category: Optional[str]) -> bool:
    if not isinstance(examples, Mapping):
        return False
    return any(
        isinstance(example, Mapping)
        and ref_targets(example.get(REF_KEY), name, category or "examples")
        for example in examples.values()
    )


def _content_uses(
    content: Any, name: str, category: Optional[str], spec: Mapping[str, Any]
) -> bool:
    if not isinstance(content, Mapping):
        return False
    for media in content.values():
        if not isinstance(media, Mapping):
            continue
        if schema_references_component(
            media.get("schema"), name, spec, category or "schemas"
        ):
            return True
        if _examples_use(media.get("examples"), name, category):
            return True
    return False


def _parameter_uses(
    parameter: Any, name: str, category: Optional[str], spec: Mapping[str, Any]
) -> bool:
    if not isinstance(parameter, Mapping):
        return False
    if ref_targets(parameter.get(REF_KEY), name, category or "parameters"):
        return True
    parameter = _resolve(spec, parameter)
    if schema_references_component(
        parameter.get("schema"), name, spec, category or "schemas"
    ):
        return True
    if _examples_use(parameter.get("examples"), name, category):
        return True
    return _content_uses(parameter.get("content"), name, category, spec)


def _request_body_uses(
    request_body: Any, name: str, category: Optional[str], spec: Mapping[str, Any]
) -> bool:
    if not isinstance(request_body, Mapping):
        return False
    if ref_targets(request_body.get(REF_KEY), name, category or "requestBodies"):
        return True
    request_body = _resolve(spec, request_body)
    return _content_uses(request_body.get("content"), name, category, spec)


def _response_uses(
    response: Any, name: str, category: Optional[str], spec: Mapping[str, Any]
) -> bool:
    if not isinstance(response, Mapping):
        return False
    if ref_targets(response.get(REF_KEY), name, category or "responses"):
        return True
    response = _resolve(spec, response)
    if _content_uses(response.get("content"), name, category, spec):
        return True
    headers = response.get("headers")
    if not isinstance(headers, Mapping):
        return False
    for header in headers.values():
        header = _resolve(spec, header)
        if isinstance(header, Mapping) and schema_references_component(
            header.get("schema"), name, spec, category or "schemas"
        ):
            return True
    return False


def find_component_usage(
    operation: Mapping[str, Any],
    component: str,
    spec: Mapping[str, Any],
    identity: str = "name",
) -> List[str]:
    """List where an operation uses a component: parameters, requestBody, responses.

    Only the top level of each location is probed; schemas found there are
    walked with ``schema_references_component`` and parameter, request body
    and response references are resolved one level.
    """
    category, name = split_component_key(component, identity)
    usage: List[str] = []
    parameters = operation.get("parameters") or []
    if any(_parameter_uses(p, name, category, spec) for p in parameters):
        usage.append("parameters")
    if _request_body_uses(operation.get("requestBody"), name, category, spec):
        usage.append("requestBody")
    responses = operation.get("responses") or {}
    if any(_response_uses(r, name, category, spec) for r in responses.values()):
        usage.append("responses")
    return usage


def _path_order(path: str) -> Tuple[str, str]:
    # case-insensitive first, code point order among case variants
    return path.casefold(), path


def _method_tags(methods: Iterable[str]) -> str:
    return "[" + "] [".join(sorted(methods)) + "]"


def _path_list_section(heading: str, grouped: Mapping[str, FrozenSet[str]]) -> str:
    section = f"## {heading}\n"
    for path in sorted(grouped, key=_path_order):
        section += f"- {_method_tags(grouped[path])} `{path}`\n"
    return section


def _affected_entries(
    path: str,
    methods: Mapping[str, List[str]],
    current: Mapping[str, Any],
    identity: str,
) -> str:
    lines = ""
    for method in sorted(methods):
        lines += f"- [{method}] `{path}`\n"
        operation = get_operation(current, path, method) or {}
        for component in sorted(methods[method]):
            locations = sorted(
                find_component_usage(operation, component, current, identity)
            )
            if locations:
                lines += f"  - `{component}` modified in {', '.join(locations)}\n"
    return lines


def _modified_section(
    change_set: ChangeSet, current: Mapping[str, Any], config: DiffConfig
) -> Optional[str]:
    direct = ""
    for path in sorted(change_set.modified, key=_path_order):
        for entry in sorted(change_set.modified[path], key=lambda m: m.method):
            direct += f"- [{entry.method}] `{path}`\n"
            for field in sorted(entry.changed_fields):
                direct += f"  - {field}\n"

    component_paths: Dict[str, Dict[str, List[str]]] = {}
    for (path, method), components in change_set.affected_by_components.items():
        if method in change_set.modified_methods(path):
            continue
        component_paths.setdefault(path, {})[method] = list(components)

    if not direct and not component_paths:
        return None

    section = "## Modified\n" + direct
    sorted_paths = sorted(component_paths, key=_path_order)
    limit = config.report.inline_affected_paths
    visible = sorted_paths[:limit]
    if direct and visible:
        section += "\n"
    identity = config.component_identity
    for path in visible:
        section += _affected_entries(path, component_paths[path], current, identity)

    remaining = sorted_paths[limit:]
    if remaining:
        section += DETAILS_OPEN
        for path in remaining:
            section += _affected_entries(
                path, component_paths[path], current, identity
            )
        section += DETAILS_CLOSE
    return section


def _renamed_section(change_set: ChangeSet) -> str:
    section = "## Renamed\n"
    for old_path in sorted(change_set.renamed, key=_path_order):
        targets = change_set.renamed[old_path]
        for target in sorted(targets, key=lambda t: _path_order(t.new_path)):
            section += (
                f"- {_method_tags(target.methods)} `{old_path}` -> "
                f"`{target.new_path}`\n"
            )
    return section


def render(
    change_set: ChangeSet,
    current: Mapping[str, Any],
    config: Optional[DiffConfig | Mapping[str, Any]] = None,
) -> str:
    config = normalize_config(config)
    sections: List[str] = []
    if change_set.added:
        sections.append(_path_list_section("Added", change_set.added))
    modified = _modified_section(change_set, current, config)
    if modified:
        sections.append(modified)
    if change_set.removed:
        sections.append(_path_list_section("Removed", change_set.removed))
    if change_set.renamed:
        sections.append(_renamed_section(change_set))

    sections.sort(key=lambda section: section.split("\n", 1)[0])
    return "\n".join(sections)
