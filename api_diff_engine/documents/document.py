from __future__ import annotations

from typing import Any, Iterator, Mapping, Optional, Tuple

from api_diff_engine.errors import InvalidDocumentError

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
EXTENSION_PREFIX = "x-"


def _is_extension(key: Any) -> bool:
    return isinstance(key, str) and key.startswith(EXTENSION_PREFIX)


def get_components(spec: Mapping[str, Any]) -> Mapping[str, Mapping[str, Any]]:
    return spec.get("components") or {}


def get_paths(spec: Mapping[str, Any]) -> Mapping[str, Mapping[str, Any]]:
    return spec.get("paths") or {}


def iter_components(spec: Mapping[str, Any]) -> Iterator[Tuple[str, str, Any]]:
    for category, definitions in get_components(spec).items():
        if _is_extension(category):
            continue
        for name, definition in (definitions or {}).items():
            yield category, name, definition


def lookup_definition(
    spec: Mapping[str, Any], category: str, name: str, default: Any = None
) -> Any:
    definitions = get_components(spec).get(category)
    if not isinstance(definitions, Mapping):
        return default
    return definitions.get(name, default)


def iter_methods(path_item: Mapping[str, Any]) -> Iterator[Tuple[str, Mapping[str, Any]]]:
    """Yield ``(METHOD, operation)`` for the HTTP method keys of a path item."""
    seen = set()
    for key, operation in path_item.items():
        if not isinstance(key, str):
            continue
        method = key.lower()
        if method not in HTTP_METHODS or method in seen:
            continue
        seen.add(method)
        yield method.upper(), operation


def iter_operations(
    spec: Mapping[str, Any],
) -> Iterator[Tuple[str, str, Mapping[str, Any]]]:
    for path, path_item in get_paths(spec).items():
        if _is_extension(path):
            continue
        for method, operation in iter_methods(path_item or {}):
            yield path, method, operation


def get_operation(
    spec: Mapping[str, Any], path: str, method: str
) -> Optional[Mapping[str, Any]]:
    path_item = get_paths(spec).get(path)
    if not path_item:
        return None
    wanted = method.upper()
    for candidate, operation in iter_methods(path_item):
        if candidate == wanted:
            return operation
    return None


def ensure_document(spec: Any, label: str = "document") -> Mapping[str, Any]:
    """Fail fast on a document whose containers are not mappings."""
    if not isinstance(spec, Mapping):
        raise InvalidDocumentError(
            f"{label} must be a mapping, got {type(spec).__name__}"
        )
    components = spec.get("components")
    if components is not None:
        if not isinstance(components, Mapping):
            raise InvalidDocumentError(
                f"{label} components must be a mapping", "components"
            )
        for category, definitions in components.items():
            if _is_extension(category) or definitions is None:
                continue
            if not isinstance(definitions, Mapping):
                raise InvalidDocumentError(
                    f"{label} component category must be a mapping",
                    f"components.{category}",
                )
    paths = spec.get("paths")
    if paths is not None:
        if not isinstance(paths, Mapping):
            raise InvalidDocumentError(f"{label} paths must be a mapping", "paths")
        for path, path_item in paths.items():
            if _is_extension(path) or path_item is None:
                continue
            if not isinstance(path_item, Mapping):
                raise InvalidDocumentError(
                    f"{label} path item must be a mapping", f"paths.{path}"
                )
            for method, operation in iter_methods(path_item):
                if not isinstance(operation, Mapping):
                    raise InvalidDocumentError(
                        f"{label} operation must be a mapping",
                        f"paths.{path}.{method.lower()}",
                    )
    return spec
