from .base import APPLICATION_RESOURCE_NAME, ResourceData, ResourceHandler
from .application_identifier_uris import ApplicationIdentifierUrisResource
from .application_federated_identity_credential import (
    ApplicationFederatedIdentityCredentialResource,
    parse_credential_id,
)
from .claims_mapping_policy import ClaimsMappingPolicyResource

__all__ = [
    "APPLICATION_RESOURCE_NAME",
    "ResourceData",
    "ResourceHandler",
    "ApplicationIdentifierUrisResource",
    "ApplicationFederatedIdentityCredentialResource",
    "ClaimsMappingPolicyResource",
    "parse_credential_id",
]
