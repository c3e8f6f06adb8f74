"""
azuread_claims_mapping_policy

声明映射策略是独立对象，不挂在应用下。删除时远端已不存在 (404) 视为成功。
"""

import json
import logging

from ..client import GraphClientError
from ..diagnostics import ApiError, IntegrityError, NotFoundError
from ..models import ClaimsMappingPolicy
from ..schema import LIST, STRING, Field, validate_not_empty
from .base import ResourceData, ResourceHandler

logger = logging.getLogger(__name__)

CLAIMS_MAPPING_POLICY_RESOURCE_NAME = "azuread_claims_mapping_policy"


def validate_json(value: str) -> str | None:
    try:
        json.loads(value)
    except ValueError as e:
        return f"definition is not valid JSON: {e}"
    return None


class ClaimsMappingPolicyResource(ResourceHandler):
    type_name = "azuread_claims_mapping_policy"

    schema = {
        "definition": Field(type=LIST, required=True, validator=validate_json, min_items=1),
        "display_name": Field(type=STRING, required=True, validator=validate_not_empty),
    }

    def _expand(self, d: ResourceData, policy_id: str | None = None) -> ClaimsMappingPolicy:
        return ClaimsMappingPolicy(
            id=policy_id,
            displayName=d.get("display_name"),
            definition=d.get("definition", []),
        )

    def create(self, d: ResourceData) -> None:
        try:
            policy = self.client.create_claims_mapping_policy(self._expand(d))
        except GraphClientError as e:
            raise ApiError("Could not create claims mapping policy", cause=e) from e
        if policy is None or not policy.id:
            raise IntegrityError("API error creating claims mapping policy",
                                 cause=ValueError("nil policy or policy with nil ID was returned"))

        d.set_id(policy.id)
        self.read(d)

    def read(self, d: ResourceData) -> None:
        try:
            policy = self.client.get_claims_mapping_policy(d.id)
        except GraphClientError as e:
            if e.not_found:
                logger.debug("Claims mapping policy with object ID %r was not found - removing from state", d.id)
                d.set_id("")
                return
            raise ApiError(f"Retrieving claims mapping policy with object ID {d.id!r}", path="id", cause=e) from e
        if policy is None:
            raise IntegrityError(f"API error retrieving claims mapping policy with object ID {d.id!r}",
                                 cause=ValueError("nil policy was returned"))

        d.set("display_name", policy.displayName)
        d.set("definition", list(policy.definition or []))

    def update(self, d: ResourceData) -> None:
        with self.locks.locked(CLAIMS_MAPPING_POLICY_RESOURCE_NAME, d.id):
            try:
                self.client.update_claims_mapping_policy(self._expand(d, d.id))
            except GraphClientError as e:
                if e.not_found:
                    raise NotFoundError(f"Claims mapping policy with object ID {d.id!r} was not found", path="id") from e
                raise ApiError(f"Updating claims mapping policy with object ID {d.id!r}", path="id", cause=e) from e

        self.read(d)

    def delete(self, d: ResourceData) -> None:
        with self.locks.locked(CLAIMS_MAPPING_POLICY_RESOURCE_NAME, d.id):
            try:
                self.client.delete_claims_mapping_policy(d.id)
            except GraphClientError as e:
                if e.not_found:
                    logger.debug("Claims mapping policy with object ID %r already deleted", d.id)
                    return
                raise ApiError(f"Deleting claims mapping policy with object ID {d.id!r}, got status {e.status}",
                               path="id", cause=e) from e
