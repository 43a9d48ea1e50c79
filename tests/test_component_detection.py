from api_diff_engine.detectors.components import (
    detect_changed_components,
    find_directly_changed_components,
)
from api_diff_engine.diffing.config import normalize_config


def _config(**overrides):
    return normalize_config(overrides)


def _ref(name, category="schemas"):
    return {"$ref": f"#/components/{category}/{name}"}


def _chain_documents():
    # Outer -> Middle -> Leaf, Leaf is the only component edited
    previous = {
        "components": {
            "schemas": {
                "Leaf": {"type": "string"},
                "Middle": {"properties": {"leaf": _ref("Leaf")}},
                "Outer": {"properties": {"middle": _ref("Middle")}},
                "Unrelated": {"type": "integer"},
            }
        }
    }
    current = {
        "components": {
            "schemas": {
                "Leaf": {"type": "string", "format": "uuid"},
                "Middle": {"properties": {"leaf": _ref("Leaf")}},
                "Outer": {"properties": {"middle": _ref("Middle")}},
                "Unrelated": {"type": "integer"},
            }
        }
    }
    return previous, current


def test_identical_components_are_unchanged():
    previous, _ = _chain_documents()

    assert detect_changed_components(previous, previous) == frozenset()


def test_new_component_is_changed():
    previous = {"components": {"schemas": {"Pet": {"type": "object"}}}}
    current = {
        "components": {
            "schemas": {"Pet": {"type": "object"}, "Owner": {"type": "object"}}
        }
    }

    assert detect_changed_components(previous, current) == frozenset({"Owner"})


def test_component_only_in_previous_is_not_reported():
    previous = {"components": {"schemas": {"Pet": {"type": "object"}}}}
    current = {"components": {"schemas": {}}}

    assert detect_changed_components(previous, current) == frozenset()


def test_single_pass_marks_transitive_referrers():
    previous, current = _chain_documents()

    changed = detect_changed_components(previous, current, _config())

    assert changed == frozenset({"Leaf", "Middle", "Outer"})
    assert "Unrelated" not in changed


def test_closure_propagation_reaches_every_referrer():
    previous, current = _chain_documents()

    changed = detect_changed_components(
        previous, current, _config(propagation="closure")
    )

    assert changed == frozenset({"Leaf", "Middle", "Outer"})


def test_referrers_in_other_categories_are_marked():
    previous = {
        "components": {
            "schemas": {"Pet": {"type": "object"}},
            "responses": {
                "PetResponse": {
                    "content": {"application/json": {"schema": _ref("Pet")}}
                }
            },
        }
    }
    current = {
        "components": {
            "schemas": {"Pet": {"type": "object", "required": ["id"]}},
            "responses": previous["components"]["responses"],
        }
    }

    assert detect_changed_components(previous, current) == frozenset(
        {"Pet", "PetResponse"}
    )


def test_qualified_identity_keeps_categories_apart():
    previous = {
        "components": {
            "schemas": {"Pet": {"type": "object"}},
            "parameters": {"Pet": {"name": "pet", "in": "query"}},
        }
    }
    current = {
        "components": {
            "schemas": {"Pet": {"type": "object", "title": "Pet"}},
            "parameters": {"Pet": {"name": "pet", "in": "query"}},
        }
    }

    assert detect_changed_components(previous, current) == frozenset({"Pet"})
    assert detect_changed_components(
        previous, current, _config(component_identity="qualified")
    ) == frozenset({"schemas/Pet"})


def test_name_identity_merges_references_across_categories():
    previous = {
        "components": {
            "schemas": {"Pet": {"type": "object"}},
            "parameters": {
                "Pet": {"name": "pet", "in": "query"},
                "PetFilter": _ref("Pet", "parameters"),
            },
        }
    }
    current = {
        "components": {
            "schemas": {"Pet": {"type": "object", "title": "Pet"}},
            "parameters": previous["components"]["parameters"],
        }
    }

    assert detect_changed_components(previous, current) == frozenset(
        {"Pet", "PetFilter"}
    )
    assert detect_changed_components(
        previous, current, _config(component_identity="qualified")
    ) == frozenset({"schemas/Pet"})


def test_key_order_only_matters_when_configured():
    previous = {"components": {"schemas": {"Pet": {"type": "object", "title": "Pet"}}}}
    current = {"components": {"schemas": {"Pet": {"title": "Pet", "type": "object"}}}}

    assert find_directly_changed_components(previous, current) == []
    assert find_directly_changed_components(
        previous, current, _config(key_order_sensitive=True)
    ) == ["Pet"]


def test_mutually_referencing_components_terminate():
    previous = {
        "components": {
            "schemas": {
                "A": {"properties": {"b": _ref("B")}},
                "B": {"properties": {"a": _ref("A")}},
                "C": {"properties": {"b": _ref("B")}},
            }
        }
    }
    current = {
        "components": {
            "schemas": {
                "A": {"properties": {"b": _ref("B")}, "description": "edited"},
                "B": {"properties": {"a": _ref("A")}},
                "C": {"properties": {"b": _ref("B")}},
            }
        }
    }

    assert detect_changed_components(previous, current) == frozenset({"A", "B", "C"})
    assert detect_changed_components(
        previous, current, _config(propagation="closure")
    ) == frozenset({"A", "B", "C"})
