"""Schema 校验"""

import pytest

from azuread_resources import ValidationError
from azuread_resources.registration import ServiceRegistration, supported_resources
from azuread_resources.resources import ApplicationIdentifierUrisResource
from azuread_resources.schema import (
    LIST,
    SET,
    STRING,
    Field,
    Timeouts,
    validate_app_uri,
    validate_config,
    validate_uuid,
    values_equal,
)

SCHEMA = {
    "name": Field(type=STRING, required=True),
    "tags": Field(type=SET),
    "steps": Field(type=LIST),
    "id": Field(type=STRING, computed=True),
}


@pytest.mark.parametrize("uri", [
    "api://11111111-1111-1111-1111-111111111111",
    "https://contoso.onmicrosoft.com/app",
    "http://localhost:8080",
    "ms-appx://app",
])
def test_valid_app_uris(uri):
    assert validate_app_uri(uri) is None


def test_uuid():
    assert validate_uuid("11111111-1111-1111-1111-111111111111") is None
    assert validate_uuid("nope") is not None


def test_sets_are_sorted_and_deduplicated():
    result = validate_config(SCHEMA, {"name": "a", "tags": ["b", "a", "b"], "steps": ["b", "a"]})
    assert result == {"name": "a", "tags": ["a", "b"], "steps": ["b", "a"]}


def test_unknown_argument():
    with pytest.raises(ValidationError) as exc:
        validate_config(SCHEMA, {"name": "a", "colour": "red"})
    assert exc.value.path == "colour"


def test_wrong_types():
    with pytest.raises(ValidationError) as exc:
        validate_config(SCHEMA, {"name": 1})
    assert exc.value.path == "name"

    with pytest.raises(ValidationError) as exc:
        validate_config(SCHEMA, {"name": "a", "tags": "single"})
    assert exc.value.path == "tags"


def test_config_must_be_object():
    with pytest.raises(ValidationError):
        validate_config(SCHEMA, ["name"])


def test_values_equal():
    assert values_equal(SCHEMA["tags"], ["a", "b"], ["b", "a"])
    assert values_equal(SCHEMA["tags"], None, [])
    assert not values_equal(SCHEMA["steps"], ["a", "b"], ["b", "a"])
    assert values_equal(SCHEMA["name"], None, "")
    assert not values_equal(SCHEMA["name"], "a", "b")


def test_default_timeouts():
    t = Timeouts()
    assert t.for_operation("create") == 15 * 60
    assert t.read == t.update == t.delete == 5 * 60


def test_duplicate_registration_is_rejected():
    class One(ServiceRegistration):
        resources = [ApplicationIdentifierUrisResource]

    with pytest.raises(ValueError):
        supported_resources([One(), One()])
