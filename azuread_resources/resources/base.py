"""
资源处理器基类

每种资源实现 create / read / update / delete 四个阶段：
- create/update: 加锁 -> 读取远端对象 -> 按配置计算目标值 -> 写入 -> 解锁 -> read
- read: 读取远端对象，404 视为已被删除，清空 id
- delete: 加锁 -> 把本资源拥有的字段恢复为空 (或删除子资源) -> 解锁
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from ..client import GraphClient, GraphClientError
from ..diagnostics import ApiError, IntegrityError, NotFoundError, ValidationError
from ..locks import NamedLockRegistry
from ..models import Application
from ..schema import Field, Timeouts, validate_uuid

logger = logging.getLogger(__name__)

# 所有修改 application 的资源共用这个 scope，按 object ID 互斥
APPLICATION_RESOURCE_NAME = "azuread_application"


@dataclass
class ResourceData:
    """
    单个资源实例的本地状态

    - attributes: 配置值 + 计算值
    - prior: 上一次的状态 (update 时用于判断变更)
    - id 为空表示资源不存在，需要从状态中移除
    """
    id: str = ""
    attributes: dict = field(default_factory=dict)
    prior: dict | None = None

    def get(self, key: str, default=None):
        value = self.attributes.get(key)
        return default if value is None else value

    def set(self, key: str, value) -> None:
        self.attributes[key] = value

    def set_id(self, id: str) -> None:
        self.id = id

    def has_change(self, key: str) -> bool:
        if self.prior is None:
            return True
        return self.prior.get(key) != self.attributes.get(key)

    @property
    def removed(self) -> bool:
        return not self.id


class ResourceHandler(ABC):
    """资源处理器"""

    type_name: str = ""
    schema: dict[str, Field] = {}
    timeouts = Timeouts()

    def __init__(self, client: GraphClient, locks: NamedLockRegistry):
        self.client = client
        self.locks = locks

    @abstractmethod
    def create(self, d: ResourceData) -> None: ...

    @abstractmethod
    def read(self, d: ResourceData) -> None: ...

    @abstractmethod
    def update(self, d: ResourceData) -> None: ...

    @abstractmethod
    def delete(self, d: ResourceData) -> None: ...

    def validate_import_id(self, id: str) -> None:
        """默认导入 ID 为 UUID"""
        if validate_uuid(id):
            raise ValidationError(f"specified object ID ({id!r}) is not valid", path="id")

    # ============ 公共方法 ============

    def _get_application(self, object_id: str, path: str = "application_object_id") -> Application:
        """
        读取应用，用于加锁后的写操作

        Raises:
            NotFoundError: 404
            ApiError: 其他错误
            IntegrityError: 返回空对象或对象没有 id
        """
        try:
            app = self.client.get_application(object_id)
        except GraphClientError as e:
            if e.not_found:
                raise NotFoundError(f"Application with object ID {object_id!r} was not found", path=path) from e
            raise ApiError(f"Retrieving application with object ID {object_id!r}", path=path, cause=e) from e
        if app is None or app.id is None:
            raise IntegrityError(
                f"API error retrieving application with object ID {object_id!r}",
                cause=ValueError("nil application or application with nil ID was returned"),
            )
        return app
