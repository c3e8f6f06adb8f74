"""
资源层错误与诊断信息

- NotFoundError: 远端对象或子资源不存在
- ApiError: 其他非 2xx 或网络错误
- IntegrityError: 调用成功但返回了空对象或没有 id 的对象
- ValidationError: 配置或导入 ID 不合法
- OperationTimeoutError: 超过操作时限
"""

from dataclasses import dataclass


@dataclass
class Diagnostic:
    """面向用户的诊断信息，path 指向相关的配置字段"""
    severity: str
    summary: str
    detail: str | None = None
    path: str | None = None

    def to_dict(self) -> dict:
        d = {"severity": self.severity, "summary": self.summary}
        if self.detail is not None:
            d["detail"] = self.detail
        if self.path is not None:
            d["path"] = self.path
        return d

    def __str__(self) -> str:
        msg = self.summary
        if self.path:
            msg = f"{self.path}: {msg}"
        if self.detail:
            msg += f": {self.detail}"
        return msg


class ResourceError(Exception):
    """资源操作错误"""
    def __init__(self, message: str, path: str | None = None, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.cause = cause

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            severity="error",
            summary=self.message,
            detail=str(self.cause) if self.cause else None,
            path=self.path,
        )

    def __str__(self) -> str:
        return str(self.to_diagnostic())


class NotFoundError(ResourceError):
    pass


class ApiError(ResourceError):
    pass


class IntegrityError(ResourceError):
    pass


class ValidationError(ResourceError):
    pass


class OperationTimeoutError(ResourceError):
    pass
