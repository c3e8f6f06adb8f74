"""
Microsoft Graph HTTP Client

使用 httpx 实现，只包含资源层需要的接口：
- application 的读取与 PATCH
- federatedIdentityCredentials 子资源
- claimsMappingPolicies

不做重试。所有非 2xx 响应抛出 GraphClientError，404 由调用方区分处理。
"""

import logging

from httpx import BaseTransport, Client, Response, TransportError

from .models import (
    Application,
    ClaimsMappingPolicy,
    FederatedIdentityCredential,
    GraphError,
)

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://graph.microsoft.com/v1.0"


class GraphClientError(Exception):
    """Graph 客户端错误"""
    def __init__(self, message: str, error: GraphError | None = None, status: int = 0):
        super().__init__(message)
        self.error = error
        self.status = error.status if error else status

    @property
    def not_found(self) -> bool:
        return self.status == 404


class GraphClient:
    """
    Microsoft Graph 客户端

    无状态，可被多个资源处理器并发使用 (httpx.Client 线程安全)。
    """

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        token: str = "",
        timeout: float = 30.0,
        transport: BaseTransport | None = None,
    ):
        """
        初始化客户端

        Args:
            endpoint: Graph endpoint URL
            token: Bearer token
            timeout: 请求超时时间
            transport: 自定义 transport (测试时注入)
        """
        self.client = Client(
            base_url=endpoint.rstrip("/"),
            headers={
                "Authorization": f"Bearer {token}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self):
        """关闭连接"""
        self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    # ============ 底层请求方法 ============

    def _handle_response(self, resp: Response) -> dict | None:
        """
        处理响应，统一错误处理

        Returns:
            响应 JSON，空响应返回 None

        Raises:
            GraphClientError: 请求失败
        """
        if resp.is_success:
            if resp.status_code == 204 or not resp.content:
                return None
            try:
                return resp.json()
            except ValueError as e:
                raise GraphClientError(f"invalid JSON in {resp.status_code} response: {e}", status=resp.status_code) from e

        try:
            error = GraphError.from_dict(resp.json(), resp.status_code)
        except ValueError:
            error = GraphError(status=resp.status_code, message=resp.text)

        raise GraphClientError(str(error), error)

    def _request(self, method: str, path: str, params: dict | None = None, json: dict | None = None) -> dict | None:
        logger.debug("%s %s", method, path)
        try:
            resp = self.client.request(method, path, params=params, json=json)
        except TransportError as e:
            raise GraphClientError(f"{method} {path}: {e}") from e
        return self._handle_response(resp)

    def _get(self, path: str, params: dict | None = None) -> dict | None:
        """GET 请求"""
        return self._request("GET", path, params=params)

    def _post(self, path: str, json: dict) -> dict | None:
        """POST 请求"""
        return self._request("POST", path, json=json)

    def _patch(self, path: str, json: dict) -> dict | None:
        """PATCH 请求"""
        return self._request("PATCH", path, json=json)

    def _delete(self, path: str) -> None:
        """DELETE 请求"""
        self._request("DELETE", path)

    # ============ Application 操作 ============

    def get_application(self, object_id: str, query: dict | None = None) -> Application | None:
        """
        获取应用

        Args:
            object_id: 应用 object ID
            query: OData 参数，例如 {"$select": "id,identifierUris"}
        """
        data = self._get(f"/applications/{object_id}", query)
        return Application.from_dict(data) if data else None

    def update_application(self, application: Application) -> None:
        """
        更新应用 (PATCH)

        只发送 application 中有值的字段，identifierUris=[] 表示清空
        """
        if not application.id:
            raise GraphClientError("Application id is required for update")
        self._patch(f"/applications/{application.id}", application.to_dict())

    # ============ Federated identity credential 操作 ============

    def get_federated_identity_credential(
        self, object_id: str, key_id: str, query: dict | None = None
    ) -> FederatedIdentityCredential | None:
        """获取应用下的单个联合身份凭据"""
        data = self._get(f"/applications/{object_id}/federatedIdentityCredentials/{key_id}", query)
        return FederatedIdentityCredential.from_dict(data) if data else None

    def create_federated_identity_credential(
        self, object_id: str, credential: FederatedIdentityCredential
    ) -> FederatedIdentityCredential | None:
        """创建联合身份凭据"""
        data = self._post(
            f"/applications/{object_id}/federatedIdentityCredentials",
            credential.to_dict(for_create=True),
        )
        return FederatedIdentityCredential.from_dict(data) if data else None

    def update_federated_identity_credential(self, object_id: str, credential: FederatedIdentityCredential) -> None:
        """更新联合身份凭据 (PATCH)"""
        if not credential.id:
            raise GraphClientError("Credential id is required for update")
        self._patch(
            f"/applications/{object_id}/federatedIdentityCredentials/{credential.id}",
            credential.to_dict(),
        )

    def delete_federated_identity_credential(self, object_id: str, key_id: str) -> None:
        """删除联合身份凭据"""
        self._delete(f"/applications/{object_id}/federatedIdentityCredentials/{key_id}")

    # ============ Claims mapping policy 操作 ============

    def get_claims_mapping_policy(self, policy_id: str) -> ClaimsMappingPolicy | None:
        """获取声明映射策略"""
        data = self._get(f"/policies/claimsMappingPolicies/{policy_id}")
        return ClaimsMappingPolicy.from_dict(data) if data else None

    def create_claims_mapping_policy(self, policy: ClaimsMappingPolicy) -> ClaimsMappingPolicy | None:
        """创建声明映射策略"""
        data = self._post("/policies/claimsMappingPolicies", policy.to_dict())
        return ClaimsMappingPolicy.from_dict(data) if data else None

    def update_claims_mapping_policy(self, policy: ClaimsMappingPolicy) -> None:
        """更新声明映射策略 (PATCH)"""
        if not policy.id:
            raise GraphClientError("Policy id is required for update")
        self._patch(f"/policies/claimsMappingPolicies/{policy.id}", policy.to_dict())

    def delete_claims_mapping_policy(self, policy_id: str) -> None:
        """删除声明映射策略"""
        self._delete(f"/policies/claimsMappingPolicies/{policy_id}")
