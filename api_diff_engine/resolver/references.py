from __future__ import annotations

from typing import Any, List, Mapping, NamedTuple, Optional, Set, Tuple

from api_diff_engine.documents.document import lookup_definition
from api_diff_engine.documents.equality import canonical_json

REF_KEY = "$ref"
COMPONENTS_PREFIX = "#/components/"
COMBINATORS = ("oneOf", "anyOf", "allOf")
QUALIFIED_SEPARATOR = "/"


class ComponentRef(NamedTuple):
    category: str
    name: str


def _unescape(segment: str) -> str:
    return segment.replace("~1", "/").replace("~0", "~")


def parse_component_ref(ref: Any) -> Optional[ComponentRef]:
    if not isinstance(ref, str) or not ref.startswith(COMPONENTS_PREFIX):
        return None
    parts = ref[len(COMPONENTS_PREFIX) :].split("/")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        return None
    return ComponentRef(_unescape(parts[0]), _unescape(parts[1]))


def component_key(ref: ComponentRef, identity: str = "name") -> str:
    if identity == "qualified":
        return f"{ref.category}{QUALIFIED_SEPARATOR}{ref.name}"
    return ref.name


def split_component_key(key: str, identity: str = "name") -> Tuple[Optional[str], str]:
    """Return ``(category, name)``; the category is unknown for name identity."""
    if identity == "qualified" and QUALIFIED_SEPARATOR in key:
        category, name = key.split(QUALIFIED_SEPARATOR, 1)
        return category, name
    return None, key


def ref_targets(ref: Any, name: str, category: Optional[str] = None) -> bool:
    target = parse_component_ref(ref)
    if target is None or target.name != name:
        return False
    return category is None or target.category == category


def lookup_component(spec: Mapping[str, Any], ref: ComponentRef) -> Any:
    return lookup_definition(spec, ref.category, ref.name)


def collect_referenced_components(
    node: Any,
    spec: Mapping[str, Any],
    identity: str = "name",
    follow_refs: bool = True,
) -> Set[str]:
    """Collect the keys of every component reachable from ``node``.

    Every nested value is visited, whether or not it sits next to a ``$ref``.
    With ``follow_refs`` the walk continues into each referenced component's
    definition, so the result is the transitive set; without it only the
    references written literally inside ``node`` are returned.

    Each component definition is entered at most once and each container is
    visited at most once, which keeps self-referencing and mutually
    referencing components finite. References to components missing from
    ``spec`` are recorded but not followed.
    """
    found: Set[str] = set()
    entered: Set[ComponentRef] = set()
    visited_nodes: Set[int] = set()
    stack: List[Any] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Mapping):
            if id(current) in visited_nodes:
                continue
            visited_nodes.add(id(current))
            target = parse_component_ref(current.get(REF_KEY))
            if target is not None:
                found.add(component_key(target, identity))
                if follow_refs and target not in entered:
                    entered.add(target)
                    definition = lookup_component(spec, target)
                    if definition is not None:
                        stack.append(definition)
            stack.extend(current.values())
        elif isinstance(current, (list, tuple)):
            if id(current) in visited_nodes:
                continue
            visited_nodes.add(id(current))
            stack.extend(current)
    return found


def _snapshot(schema: Mapping[str, Any]) -> str:
    try:
        return canonical_json(schema)
    except (ValueError, RecursionError):
        # self-containing structures cannot be serialized
        return f"id:{id(schema)}"


def schema_references_component(
    schema: Any,
    name: str,
    spec: Mapping[str, Any],
    category: Optional[str] = "schemas",
) -> bool:
    """Return True when ``schema`` reaches ``#/components/<category>/<name>``.

    Only schema keywords are walked: ``$ref`` (followed into other
    components), the ``oneOf``/``anyOf``/``allOf`` combinators,
    ``properties``, ``items`` and ``additionalProperties`` when it is a
    schema rather than a boolean. A sub-schema whose serialization was
    already inspected is skipped.
    """
    seen: Set[str] = set()
    stack: List[Any] = [schema]
    while stack:
        current = stack.pop()
        if not isinstance(current, Mapping):
            continue
        snapshot = _snapshot(current)
        if snapshot in seen:
            continue
        seen.add(snapshot)

        ref = current.get(REF_KEY)
        if ref is not None:
            if ref_targets(ref, name, category):
                return True
            target = parse_component_ref(ref)
            if target is not None:
                definition = lookup_component(spec, target)
                if isinstance(definition, Mapping):
                    stack.append(definition)

        pending: List[Any] = []
        for combinator in COMBINATORS:
            subschemas = current.get(combinator)
            if isinstance(subschemas, list):
                pending.extend(subschemas)
        properties = current.get("properties")
        if isinstance(properties, Mapping):
            pending.extend(properties.values())
        items = current.get("items")
        if isinstance(items, Mapping):
            pending.append(items)
        additional = current.get("additionalProperties")
        if isinstance(additional, Mapping):
            pending.append(additional)
        stack.extend(reversed(pending))
    return False
