from api_diff_engine.detectors.affected_paths import find_affected_paths
from api_diff_engine.diffing.config import normalize_config


def _current():
    return {
        "components": {
            "schemas": {
                "Pet": {"type": "object"},
                "PetList": {"type": "array", "items": {"$ref": "#/components/schemas/Pet"}},
                "Owner": {"type": "object"},
            },
            "parameters": {
                "Limit": {"name": "limit", "in": "query", "schema": {"type": "integer"}}
            },
        },
        "paths": {
            "/pets": {
                "get": {
                    "parameters": [{"$ref": "#/components/parameters/Limit"}],
                    "responses": {
                        "200": {
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/PetList"}
                                }
                            }
                        }
                    },
                }
            },
            "/owners": {
                "get": {
                    "responses": {
                        "200": {
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/Owner"}
                                }
                            }
                        }
                    }
                }
            },
        },
    }


def test_no_changed_components_means_no_affected_paths():
    assert find_affected_paths(_current(), frozenset()) == {}


def test_records_triggering_components_per_endpoint():
    affected = find_affected_paths(_current(), frozenset({"Pet", "Limit"}))

    assert affected == {("/pets", "GET"): frozenset({"Pet", "Limit"})}


def test_operation_dependencies_are_transitive():
    affected = find_affected_paths(_current(), frozenset({"PetList", "Owner"}))

    assert affected == {
        ("/pets", "GET"): frozenset({"PetList"}),
        ("/owners", "GET"): frozenset({"Owner"}),
    }


def test_qualified_identity_keys():
    config = normalize_config({"component_identity": "qualified"})

    affected = find_affected_paths(
        _current(), frozenset({"schemas/Pet", "Pet"}), config
    )

    assert affected == {("/pets", "GET"): frozenset({"schemas/Pet"})}
