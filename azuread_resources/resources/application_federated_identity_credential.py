"""
azuread_application_federated_identity_credential

应用下的联合身份凭据。资源 ID 为 "{objectId}/{keyId}"。
写操作持有应用锁，与同一应用上的 identifier URIs 等资源互斥。
"""

import logging

from ..client import GraphClientError
from ..diagnostics import ApiError, IntegrityError, NotFoundError, ValidationError
from ..models import FederatedIdentityCredential
from ..schema import LIST, STRING, Field, validate_not_empty, validate_uuid
from .base import APPLICATION_RESOURCE_NAME, ResourceData, ResourceHandler

logger = logging.getLogger(__name__)


def parse_credential_id(id: str) -> tuple[str, str]:
    """
    解析 "{objectId}/{keyId}"

    Raises:
        ValidationError: 格式错误或任一部分不是 UUID
    """
    parts = id.split("/") if id else []
    if len(parts) != 2:
        raise ValidationError(f"federated identity credential ID {id!r} should be in the format objectId/keyId", path="id")
    object_id, key_id = parts
    if validate_uuid(object_id):
        raise ValidationError(f"object ID {object_id!r} in {id!r} is not a valid UUID", path="id")
    if validate_uuid(key_id):
        raise ValidationError(f"key ID {key_id!r} in {id!r} is not a valid UUID", path="id")
    return object_id, key_id


class ApplicationFederatedIdentityCredentialResource(ResourceHandler):
    type_name = "azuread_application_federated_identity_credential"

    schema = {
        "application_object_id": Field(type=STRING, required=True, force_new=True, validator=validate_uuid),
        "display_name": Field(type=STRING, required=True, force_new=True, validator=validate_not_empty),
        "description": Field(type=STRING),
        "audiences": Field(type=LIST, required=True, validator=validate_not_empty, min_items=1, max_items=1),
        "issuer": Field(type=STRING, required=True, validator=validate_not_empty),
        "subject": Field(type=STRING, required=True, validator=validate_not_empty),
        "credential_id": Field(type=STRING, computed=True),
    }

    def validate_import_id(self, id: str) -> None:
        parse_credential_id(id)

    def _expand(self, d: ResourceData, key_id: str | None = None) -> FederatedIdentityCredential:
        return FederatedIdentityCredential(
            id=key_id,
            name=d.get("display_name"),
            audiences=d.get("audiences", []),
            issuer=d.get("issuer"),
            subject=d.get("subject"),
            description=d.get("description"),
        )

    def create(self, d: ResourceData) -> None:
        object_id = d.get("application_object_id")

        with self.locks.locked(APPLICATION_RESOURCE_NAME, object_id):
            self._get_application(object_id)
            try:
                credential = self.client.create_federated_identity_credential(object_id, self._expand(d))
            except GraphClientError as e:
                raise ApiError(f"Adding federated identity credential for application with object ID {object_id!r}",
                               cause=e) from e
            if credential is None or not credential.id:
                raise IntegrityError(
                    f"API error adding federated identity credential for application with object ID {object_id!r}",
                    cause=ValueError("nil credential or credential with nil ID was returned"),
                )
            d.set_id(f"{object_id}/{credential.id}")

        self.read(d)

    def read(self, d: ResourceData) -> None:
        object_id, key_id = parse_credential_id(d.id)
        try:
            credential = self.client.get_federated_identity_credential(object_id, key_id)
        except GraphClientError as e:
            if e.not_found:
                logger.debug("Federated identity credential %r for application %r was not found - removing from state",
                             key_id, object_id)
                d.set_id("")
                return
            raise ApiError(f"Retrieving federated identity credential {key_id!r} for application with object ID {object_id!r}",
                           path="id", cause=e) from e
        if credential is None:
            raise IntegrityError(f"API error retrieving federated identity credential {key_id!r}",
                                 cause=ValueError("nil credential was returned"))

        d.set("application_object_id", object_id)
        d.set("credential_id", key_id)
        d.set("display_name", credential.name)
        d.set("description", credential.description)
        d.set("audiences", list(credential.audiences or []))
        d.set("issuer", credential.issuer)
        d.set("subject", credential.subject)

    def update(self, d: ResourceData) -> None:
        object_id, key_id = parse_credential_id(d.id)

        credential = self._expand(d, key_id)
        # description 从配置中移除时要显式清空，否则 PATCH 不会带上该字段
        if credential.description is None and d.has_change("description"):
            credential.description = ""

        with self.locks.locked(APPLICATION_RESOURCE_NAME, object_id):
            try:
                self.client.update_federated_identity_credential(object_id, credential)
            except GraphClientError as e:
                if e.not_found:
                    raise NotFoundError(
                        f"Federated identity credential {key_id!r} for application with object ID {object_id!r} was not found",
                        path="id",
                    ) from e
                raise ApiError(f"Updating federated identity credential {key_id!r} for application with object ID {object_id!r}",
                               path="id", cause=e) from e

        self.read(d)

    def delete(self, d: ResourceData) -> None:
        object_id, key_id = parse_credential_id(d.id)

        # 404 不视为成功，与 claims mapping policy 不同
        with self.locks.locked(APPLICATION_RESOURCE_NAME, object_id):
            try:
                self.client.delete_federated_identity_credential(object_id, key_id)
            except GraphClientError as e:
                if e.not_found:
                    raise NotFoundError(
                        f"Federated identity credential {key_id!r} for application with object ID {object_id!r} was not found",
                        path="id",
                    ) from e
                raise ApiError(f"Removing federated identity credential {key_id!r} from application with object ID {object_id!r}, got status {e.status}",
                               path="id", cause=e) from e
