"""
Microsoft Graph 数据模型

只覆盖本项目资源用到的字段：
https://learn.microsoft.com/graph/api/resources/application

约定：
- to_dict() 只输出有值的字段，但空列表会保留 (用于清空远端字段)
- 字段名与 Graph 接口保持一致 (camelCase)
"""

from dataclasses import dataclass, field


# ============ Application ============

@dataclass
class Application:
    """
    应用对象 (application)

    本项目只拥有 identifierUris 字段，其余字段只读。
    """
    id: str | None = None
    appId: str | None = None
    displayName: str | None = None
    identifierUris: list[str] | None = None

    def to_dict(self) -> dict:
        """转换为 PATCH 请求体 (不含 id)"""
        d: dict = {}
        if self.displayName is not None:
            d["displayName"] = self.displayName
        if self.identifierUris is not None:
            d["identifierUris"] = list(self.identifierUris)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "Application":
        return cls(
            id=data.get("id"),
            appId=data.get("appId"),
            displayName=data.get("displayName"),
            identifierUris=data.get("identifierUris"),
        )


# ============ 子资源 ============

@dataclass
class FederatedIdentityCredential:
    """
    联合身份凭据 (federatedIdentityCredential)

    挂在 application 下的子资源，地址为 {objectId}/{keyId}。
    """
    name: str | None = None
    id: str | None = None
    audiences: list[str] | None = None
    issuer: str | None = None
    subject: str | None = None
    description: str | None = None

    def to_dict(self, for_create: bool = False) -> dict:
        d: dict = {}
        # name 创建后不可修改
        if for_create and self.name is not None:
            d["name"] = self.name
        if self.audiences is not None:
            d["audiences"] = list(self.audiences)
        if self.issuer is not None:
            d["issuer"] = self.issuer
        if self.subject is not None:
            d["subject"] = self.subject
        if self.description is not None:
            d["description"] = self.description
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "FederatedIdentityCredential":
        return cls(
            name=data.get("name"),
            id=data.get("id"),
            audiences=data.get("audiences"),
            issuer=data.get("issuer"),
            subject=data.get("subject"),
            description=data.get("description"),
        )


# ============ 策略 ============

@dataclass
class ClaimsMappingPolicy:
    """声明映射策略 (claimsMappingPolicy)"""
    displayName: str | None = None
    definition: list[str] | None = None
    id: str | None = None

    def to_dict(self) -> dict:
        d: dict = {}
        if self.displayName is not None:
            d["displayName"] = self.displayName
        if self.definition is not None:
            d["definition"] = list(self.definition)
        return d

    @classmethod
    def from_dict(cls, data: dict) -> "ClaimsMappingPolicy":
        return cls(
            displayName=data.get("displayName"),
            definition=data.get("definition"),
            id=data.get("id"),
        )


# ============ 响应类型 ============

@dataclass
class GraphError:
    """
    Graph 错误响应

    格式: {"error": {"code": ..., "message": ..., "innerError": {"request-id": ..., "date": ...}}}
    """
    status: int
    code: str | None = None
    message: str | None = None
    request_id: str | None = None
    date: str | None = None

    @classmethod
    def from_dict(cls, data: dict, status_code: int = 0) -> "GraphError":
        error = data.get("error") or {}
        inner = error.get("innerError") or error.get("innererror") or {}
        return cls(
            status=status_code,
            code=error.get("code"),
            message=error.get("message"),
            request_id=inner.get("request-id"),
            date=inner.get("date"),
        )

    def __str__(self) -> str:
        msg = f"[{self.status}] {self.code or 'UnknownError'}: {self.message or 'Unknown error'}"
        if self.request_id:
            msg += f" (request: {self.request_id})"
        return msg


# ============ 执行结果 ============

@dataclass
class ApplyResult:
    """apply/destroy 执行结果，按资源地址 (type.name) 归类"""
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    replaced: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    details: dict = field(default_factory=dict)  # {address: {"id": ..., "diagnostic": {...}}}

    @property
    def ok(self) -> bool:
        return not self.errors
