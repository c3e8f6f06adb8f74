"""
azuread_application_identifier_uris

管理应用的 identifierUris 字段。应用本身由其他资源管理，这里只拥有这一个
字段：删除资源时把字段清空，而不是删除应用。
"""

import logging

from ..client import GraphClientError
from ..diagnostics import ApiError, IntegrityError
from ..models import Application
from ..schema import SET, STRING, Field, validate_app_uri, validate_uuid
from .base import APPLICATION_RESOURCE_NAME, ResourceData, ResourceHandler

logger = logging.getLogger(__name__)


class ApplicationIdentifierUrisResource(ResourceHandler):
    type_name = "azuread_application_identifier_uris"

    schema = {
        "application_object_id": Field(
            type=STRING,
            required=True,
            force_new=True,
            validator=validate_uuid,
            description="The object ID of the application whose identifier URIs are managed",
        ),
        "identifier_uris": Field(
            type=SET,
            validator=validate_app_uri,
            description="The user-defined URI(s) that uniquely identify an application within its tenant",
        ),
    }

    def create(self, d: ResourceData) -> None:
        object_id = d.get("application_object_id")
        self._replace_identifier_uris(object_id, d.get("identifier_uris", []))
        d.set_id(object_id)
        self.read(d)

    def update(self, d: ResourceData) -> None:
        self._replace_identifier_uris(d.id, d.get("identifier_uris", []))
        self.read(d)

    def read(self, d: ResourceData) -> None:
        try:
            app = self.client.get_application(d.id)
        except GraphClientError as e:
            if e.not_found:
                logger.debug("Application with object ID %r was not found - removing from state", d.id)
                d.set_id("")
                return
            raise ApiError(f"Retrieving application with object ID {d.id!r}", path="id", cause=e) from e
        if app is None:
            raise IntegrityError(f"API error retrieving application with object ID {d.id!r}",
                                 cause=ValueError("nil application was returned"))

        d.set("application_object_id", d.id)
        d.set("identifier_uris", sorted(set(app.identifierUris or [])))

    def delete(self, d: ResourceData) -> None:
        self._replace_identifier_uris(d.id, [])

    def _replace_identifier_uris(self, object_id: str, uris: list[str]) -> None:
        """整体替换 identifierUris，持有应用锁期间完成读取和写入"""
        with self.locks.locked(APPLICATION_RESOURCE_NAME, object_id):
            self._get_application(object_id)
            properties = Application(id=object_id, identifierUris=list(uris))
            try:
                self.client.update_application(properties)
            except GraphClientError as e:
                raise ApiError(f"Could not update application with object ID {object_id!r}", cause=e) from e
