"""azuread_application_identifier_uris"""

import threading
import time

import pytest

from azuread_resources import ApiError, IntegrityError, NotFoundError, ValidationError
from azuread_resources.resources import APPLICATION_RESOURCE_NAME, ApplicationIdentifierUrisResource, ResourceData

TYPE = "azuread_application_identifier_uris"


def config(object_id, *uris):
    return {"application_object_id": object_id, "identifier_uris": list(uris)}


def test_create_update_delete(provider, graph):
    object_id = graph.add_application()

    d = provider.create(TYPE, config(object_id, "api://x"))
    assert d.id == object_id
    assert d.attributes["identifier_uris"] == ["api://x"]
    assert graph.applications[object_id]["identifierUris"] == ["api://x"]

    d = provider.update(TYPE, d.id, d.attributes, config(object_id, "api://x", "https://y"))
    assert set(graph.applications[object_id]["identifierUris"]) == {"api://x", "https://y"}
    assert d.attributes["identifier_uris"] == ["api://x", "https://y"]

    provider.delete(TYPE, d.id, d.attributes)
    assert graph.applications[object_id]["identifierUris"] == []
    # 应用本身不删除
    assert object_id in graph.applications


def test_read_back_is_order_independent(provider, graph):
    object_id = graph.add_application()

    d = provider.create(TYPE, config(object_id, "https://y", "api://x", "api://x"))

    assert d.attributes["identifier_uris"] == ["api://x", "https://y"]
    assert provider.plan(TYPE, d.attributes, provider.validate(TYPE, config(object_id, "api://x", "https://y"))).value == "noop"


def test_read_after_out_of_band_delete_clears_id(provider, graph):
    object_id = graph.add_application(["api://x"])
    d = provider.import_resource(TYPE, object_id)

    del graph.applications[object_id]
    d = provider.read(TYPE, d.id, d.attributes)

    assert d.removed


def test_update_when_application_missing(provider, graph, locks):
    object_id = graph.add_application(["api://x"])
    graph.fail[("GET", f"/v1.0/applications/{object_id}")] = 404

    with pytest.raises(NotFoundError) as exc:
        provider.update(TYPE, object_id, config(object_id, "api://x"), config(object_id, "api://z"))

    assert object_id in str(exc.value)
    assert exc.value.path == "application_object_id"
    assert not locks.is_locked(APPLICATION_RESOURCE_NAME, object_id)
    assert graph.calls("PATCH") == []


def test_create_when_application_missing(provider, graph):
    missing = "11111111-1111-1111-1111-111111111111"

    with pytest.raises(NotFoundError) as exc:
        provider.create(TYPE, config(missing, "api://x"))

    assert missing in exc.value.message
    assert graph.calls("PATCH") == []


def test_delete_when_application_missing_is_an_error(provider, graph, locks):
    missing = "11111111-1111-1111-1111-111111111111"

    with pytest.raises(NotFoundError):
        provider.delete(TYPE, missing)

    assert not locks.is_locked(APPLICATION_RESOURCE_NAME, missing)


def test_empty_application_is_integrity_error(client, graph, locks):
    object_id = graph.add_application()
    graph.empty.add(("GET", f"/v1.0/applications/{object_id}"))
    handler = ApplicationIdentifierUrisResource(client, locks)
    d = ResourceData(attributes=config(object_id, "api://x"))

    with pytest.raises(IntegrityError) as exc:
        handler.create(d)

    assert object_id in exc.value.message
    assert d.id == ""
    assert not locks.is_locked(APPLICATION_RESOURCE_NAME, object_id)


def test_failed_update_does_not_commit_id(client, graph, locks):
    object_id = graph.add_application()
    graph.fail[("PATCH", f"/v1.0/applications/{object_id}")] = 500
    handler = ApplicationIdentifierUrisResource(client, locks)
    d = ResourceData(attributes=config(object_id, "api://x"))

    with pytest.raises(ApiError) as exc:
        handler.create(d)

    assert "Could not update application" in exc.value.message
    assert "[500]" in exc.value.to_diagnostic().detail
    assert d.id == ""
    assert not locks.is_locked(APPLICATION_RESOURCE_NAME, object_id)


def test_create_waits_for_application_lock(provider, graph, locks):
    object_id = graph.add_application()
    errors = []

    def create():
        try:
            provider.create(TYPE, config(object_id, "api://x"))
        except Exception as e:
            errors.append(e)

    locks.acquire(APPLICATION_RESOURCE_NAME, object_id)
    t = threading.Thread(target=create)
    t.start()
    time.sleep(0.2)
    assert graph.requests == []

    locks.release(APPLICATION_RESOURCE_NAME, object_id)
    t.join(timeout=10)

    assert errors == []
    assert graph.applications[object_id]["identifierUris"] == ["api://x"]


def test_import(provider, graph):
    object_id = graph.add_application(["api://x"])

    d = provider.import_resource(TYPE, object_id)

    assert d.attributes == {"application_object_id": object_id, "identifier_uris": ["api://x"]}


def test_import_rejects_bad_id(provider):
    with pytest.raises(ValidationError):
        provider.import_resource(TYPE, "not-a-uuid")


def test_import_missing_object(provider):
    with pytest.raises(NotFoundError):
        provider.import_resource(TYPE, "11111111-1111-1111-1111-111111111111")


@pytest.mark.parametrize("uri", ["", "not a uri", "ftp://example.com", "api://", "urn:example"])
def test_invalid_identifier_uris(provider, uri):
    with pytest.raises(ValidationError) as exc:
        provider.validate(TYPE, config("11111111-1111-1111-1111-111111111111", uri))
    assert exc.value.path == "identifier_uris"


def test_invalid_object_id(provider):
    with pytest.raises(ValidationError) as exc:
        provider.validate(TYPE, config("abc", "api://x"))
    assert exc.value.path == "application_object_id"
