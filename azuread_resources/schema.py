"""
资源配置 Schema

每个资源声明自己的字段，字段类型只有三种：
- string: 字符串
- set: 字符串集合，无序、去重，状态中以排序后的列表保存
- list: 字符串列表，保留顺序
"""

import uuid
from dataclasses import dataclass
from typing import Callable
from urllib.parse import urlparse

from .diagnostics import ValidationError

STRING = "string"
SET = "set"
LIST = "list"

APP_URI_SCHEMES = ("http", "https", "api", "ms-appx")


# ============ 校验函数 ============
# 校验失败返回错误信息，成功返回 None

def validate_not_empty(value: str) -> str | None:
    if not value or not value.strip():
        return "must not be empty"
    return None


def validate_uuid(value: str) -> str | None:
    try:
        uuid.UUID(value)
    except (TypeError, ValueError):
        return f"{value!r} is not a valid UUID"
    return None


def validate_app_uri(value: str) -> str | None:
    """应用 URI: 必须有 scheme 和 host，scheme 为 http/https/api/ms-appx"""
    if not value or not value.strip():
        return "URI must not be empty"
    if any(c.isspace() for c in value):
        return f"URI {value!r} must not contain whitespace"
    u = urlparse(value)
    if u.scheme not in APP_URI_SCHEMES:
        return f"expected URI {value!r} to have a scheme of: {', '.join(APP_URI_SCHEMES)}"
    if not u.netloc:
        return f"URI {value!r} has no host"
    return None


# ============ 字段定义 ============

@dataclass(frozen=True)
class Field:
    type: str = STRING
    required: bool = False
    computed: bool = False
    force_new: bool = False
    validator: Callable[[str], str | None] | None = None
    min_items: int | None = None
    max_items: int | None = None
    description: str = ""

    @property
    def optional(self) -> bool:
        return not self.required and not self.computed

    @property
    def is_collection(self) -> bool:
        return self.type in (SET, LIST)


@dataclass(frozen=True)
class Timeouts:
    """各操作的固定时限 (秒)"""
    create: float = 15 * 60
    read: float = 5 * 60
    update: float = 5 * 60
    delete: float = 5 * 60

    def for_operation(self, operation: str) -> float:
        return getattr(self, operation)


def normalize(f: Field, value):
    """set 字段去重排序，其余原样返回"""
    if value is None:
        return None
    if f.type == SET:
        return sorted(set(value))
    if f.type == LIST:
        return list(value)
    return value


def values_equal(f: Field, a, b) -> bool:
    """比较两个值，set 字段与顺序无关；未设置等同于空值"""
    if f.is_collection:
        a = a or []
        b = b or []
        if f.type == SET:
            return set(a) == set(b)
        return list(a) == list(b)
    return (a or None) == (b or None)


def validate_config(schema: dict[str, Field], config: dict) -> dict:
    """
    校验声明的配置

    Returns:
        规范化后的配置 (set 字段为排序后的列表)

    Raises:
        ValidationError: 第一个不合法的字段
    """
    if not isinstance(config, dict):
        raise ValidationError("configuration must be an object")

    for key in config:
        if key not in schema:
            raise ValidationError(f"unsupported argument {key!r}", path=key)

    result: dict = {}
    for key, f in schema.items():
        value = config.get(key)

        if f.computed and not f.required:
            if value is not None:
                raise ValidationError(f"{key!r} is computed and cannot be set", path=key)
            continue

        if value is None:
            if f.required:
                raise ValidationError(f"the argument {key!r} is required", path=key)
            continue

        if f.is_collection:
            if not isinstance(value, (list, tuple, set)) or not all(isinstance(v, str) for v in value):
                raise ValidationError(f"{key!r} must be a list of strings", path=key)
            items = list(value)
        else:
            if not isinstance(value, str):
                raise ValidationError(f"{key!r} must be a string", path=key)
            items = [value]

        if f.validator is not None:
            for item in items:
                error = f.validator(item)
                if error:
                    raise ValidationError(error, path=key)

        value = normalize(f, value)
        if f.is_collection:
            if f.min_items is not None and len(value) < f.min_items:
                raise ValidationError(f"{key!r} requires at least {f.min_items} item(s)", path=key)
            if f.max_items is not None and len(value) > f.max_items:
                raise ValidationError(f"{key!r} allows at most {f.max_items} item(s)", path=key)

        result[key] = value

    return result
