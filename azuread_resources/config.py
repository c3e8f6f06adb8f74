"""
Provider 配置

从 graph-config.json 读取：

    {
        "graph_endpoint": "https://graph.microsoft.com/v1.0",
        "access_token": "...",
        "timeout": 30,
        "parallelism": 10
    }

环境变量 AZUREAD_ACCESS_TOKEN / AZUREAD_GRAPH_ENDPOINT 优先于文件。
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path

from .client import DEFAULT_ENDPOINT, GraphClient
from .provider import DEFAULT_PARALLELISM

CONFIG_FILE = "graph-config.json"
ENV_TOKEN = "AZUREAD_ACCESS_TOKEN"
ENV_ENDPOINT = "AZUREAD_GRAPH_ENDPOINT"


class ConfigError(Exception):
    """配置错误"""
    pass


@dataclass
class ProviderConfig:
    access_token: str
    graph_endpoint: str = DEFAULT_ENDPOINT
    timeout: float = 30.0
    parallelism: int = DEFAULT_PARALLELISM

    def __post_init__(self):
        if not self.access_token:
            raise ConfigError(f"access_token 是必填字段 (或设置环境变量 {ENV_TOKEN})")
        if self.parallelism < 1:
            raise ConfigError("parallelism 必须大于 0")

    @classmethod
    def from_dict(cls, data: dict, environ: dict | None = None) -> "ProviderConfig":
        env = os.environ if environ is None else environ
        return cls(
            access_token=env.get(ENV_TOKEN) or data.get("access_token", ""),
            graph_endpoint=env.get(ENV_ENDPOINT) or data.get("graph_endpoint") or DEFAULT_ENDPOINT,
            timeout=float(data.get("timeout", 30.0)),
            parallelism=int(data.get("parallelism", DEFAULT_PARALLELISM)),
        )

    @classmethod
    def load(cls, file: str | Path = CONFIG_FILE, environ: dict | None = None) -> "ProviderConfig":
        """
        读取配置文件，文件不存在时只使用环境变量

        Raises:
            ConfigError: 格式错误或缺少 token
        """
        path = Path(file)
        data: dict = {}
        if path.exists():
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except ValueError as e:
                raise ConfigError(f"{path} 格式错误: {e}") from e
            if not isinstance(data, dict):
                raise ConfigError(f"{path} 格式错误: 应为 JSON 对象")
        return cls.from_dict(data, environ)

    def create_client(self, **kwargs) -> GraphClient:
        return GraphClient(self.graph_endpoint, self.access_token, timeout=self.timeout, **kwargs)
