"""
服务注册

每个服务列出自己支持的资源类型，合并后得到 type_name -> 处理器类 的分发表。
"""

from .resources import (
    ApplicationFederatedIdentityCredentialResource,
    ApplicationIdentifierUrisResource,
    ClaimsMappingPolicyResource,
    ResourceHandler,
)


class ServiceRegistration:
    name: str = ""
    website_categories: list[str] = []
    resources: list[type[ResourceHandler]] = []

    def supported_resources(self) -> dict[str, type[ResourceHandler]]:
        return {r.type_name: r for r in self.resources}


class ApplicationsRegistration(ServiceRegistration):
    name = "Applications"
    website_categories = ["Applications"]
    resources = [
        ApplicationIdentifierUrisResource,
        ApplicationFederatedIdentityCredentialResource,
    ]


class PoliciesRegistration(ServiceRegistration):
    name = "Policies"
    website_categories = ["Policies"]
    resources = [ClaimsMappingPolicyResource]


SUPPORTED_SERVICES: list[ServiceRegistration] = [
    ApplicationsRegistration(),
    PoliciesRegistration(),
]


def supported_resources(services: list[ServiceRegistration] | None = None) -> dict[str, type[ResourceHandler]]:
    """合并所有服务的资源，type_name 重复视为错误"""
    table: dict[str, type[ResourceHandler]] = {}
    for service in services or SUPPORTED_SERVICES:
        for type_name, handler in service.supported_resources().items():
            if type_name in table:
                raise ValueError(f"resource type {type_name!r} registered by more than one service")
            table[type_name] = handler
    return table
