"""
Azure AD Graph Resources

用 Microsoft Graph 实现的声明式资源：应用 identifier URIs、联合身份凭据、声明映射策略。
"""

from .models import (
    Application,
    FederatedIdentityCredential,
    ClaimsMappingPolicy,
    GraphError,
    ApplyResult,
)

from .client import GraphClient, GraphClientError
from .config import ConfigError, ProviderConfig
from .diagnostics import (
    Diagnostic,
    ResourceError,
    NotFoundError,
    ApiError,
    IntegrityError,
    ValidationError,
    OperationTimeoutError,
)
from .locks import NamedLockRegistry
from .provider import PlanAction, Provider, ResourceConfig, ResourceState
from .resources import ResourceData, ResourceHandler

__all__ = [
    # Client
    "GraphClient",
    "GraphClientError",
    # Models
    "Application",
    "FederatedIdentityCredential",
    "ClaimsMappingPolicy",
    "GraphError",
    "ApplyResult",
    # Errors
    "Diagnostic",
    "ResourceError",
    "NotFoundError",
    "ApiError",
    "IntegrityError",
    "ValidationError",
    "OperationTimeoutError",
    # Provider
    "ConfigError",
    "ProviderConfig",
    "NamedLockRegistry",
    "PlanAction",
    "Provider",
    "ResourceConfig",
    "ResourceState",
    "ResourceData",
    "ResourceHandler",
]
