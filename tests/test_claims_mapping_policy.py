"""azuread_claims_mapping_policy"""

import json

import pytest

from azuread_resources import ApiError, IntegrityError, ValidationError

TYPE = "azuread_claims_mapping_policy"

DEFINITION = json.dumps({"ClaimsMappingPolicy": {"Version": 1, "IncludeBasicClaimSet": "true"}})


def test_create_update_delete(provider, graph):
    d = provider.create(TYPE, {"display_name": "basic", "definition": [DEFINITION]})
    assert graph.policies[d.id]["displayName"] == "basic"

    d = provider.update(TYPE, d.id, d.attributes, {"display_name": "renamed", "definition": [DEFINITION]})
    assert graph.policies[d.id]["displayName"] == "renamed"
    assert d.attributes == {"display_name": "renamed", "definition": [DEFINITION]}

    provider.delete(TYPE, d.id, d.attributes)
    assert graph.policies == {}


def test_delete_missing_policy_is_tolerated(provider, graph, locks):
    # 与联合身份凭据不同，这里 404 视为已删除
    d = provider.create(TYPE, {"display_name": "basic", "definition": [DEFINITION]})
    graph.policies.clear()

    provider.delete(TYPE, d.id, d.attributes)

    assert not locks.is_locked("azuread_claims_mapping_policy", d.id)


def test_delete_other_errors_surface(provider, graph):
    d = provider.create(TYPE, {"display_name": "basic", "definition": [DEFINITION]})
    graph.fail[("DELETE", f"/v1.0/policies/claimsMappingPolicies/{d.id}")] = 403

    with pytest.raises(ApiError) as exc:
        provider.delete(TYPE, d.id, d.attributes)

    assert "got status 403" in exc.value.message


def test_create_without_id_is_integrity_error(provider, graph):
    graph.empty.add(("POST", "/v1.0/policies/claimsMappingPolicies"))

    with pytest.raises(IntegrityError):
        provider.create(TYPE, {"display_name": "basic", "definition": [DEFINITION]})


def test_read_removed_policy(provider, graph):
    d = provider.create(TYPE, {"display_name": "basic", "definition": [DEFINITION]})
    graph.policies.clear()

    assert provider.read(TYPE, d.id).removed


def test_definition_must_be_json(provider):
    with pytest.raises(ValidationError) as exc:
        provider.validate(TYPE, {"display_name": "basic", "definition": ["{not json"]})
    assert exc.value.path == "definition"


def test_missing_required_field(provider):
    with pytest.raises(ValidationError) as exc:
        provider.validate(TYPE, {"definition": [DEFINITION]})
    assert exc.value.path == "display_name"
