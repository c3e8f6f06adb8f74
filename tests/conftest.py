"""
测试夹具: 内存中的 Graph 服务 (httpx.MockTransport)
"""

import json
import re
import threading
import uuid

import httpx
import pytest

from azuread_resources import GraphClient, NamedLockRegistry, Provider

ENDPOINT = "https://graph.test/v1.0"

APP_PATH = re.compile(r"^/v1\.0/applications/([^/]+)$")
FIC_LIST_PATH = re.compile(r"^/v1\.0/applications/([^/]+)/federatedIdentityCredentials$")
FIC_PATH = re.compile(r"^/v1\.0/applications/([^/]+)/federatedIdentityCredentials/([^/]+)$")
POLICY_LIST_PATH = re.compile(r"^/v1\.0/policies/claimsMappingPolicies$")
POLICY_PATH = re.compile(r"^/v1\.0/policies/claimsMappingPolicies/([^/]+)$")


def not_found(what: str) -> httpx.Response:
    return httpx.Response(404, json={
        "error": {
            "code": "Request_ResourceNotFound",
            "message": f"Resource '{what}' does not exist",
            "innerError": {"request-id": "req-404", "date": "2026-10-17T00:00:00"},
        }
    })


class FakeGraph:
    """
    内存中的 Graph

    - fail[(method, path)] = status: 该请求返回指定错误码
    - empty[(method, path)]: 该请求返回 200 空响应
    - raw[(method, path)] = text: 该请求返回 200 和非 JSON 文本
    - on_request: 每个请求进入时调用，用于并发测试
    """

    def __init__(self):
        self.applications: dict[str, dict] = {}
        self.credentials: dict[str, dict[str, dict]] = {}
        self.policies: dict[str, dict] = {}
        self.requests: list[tuple[str, str, dict | None]] = []
        self.fail: dict[tuple[str, str], int] = {}
        self.empty: set[tuple[str, str]] = set()
        self.raw: dict[tuple[str, str], str] = {}
        self.on_request = None
        self._lock = threading.Lock()

    def add_application(self, identifier_uris: list[str] | None = None, display_name: str = "app") -> str:
        object_id = str(uuid.uuid4())
        self.applications[object_id] = {
            "id": object_id,
            "appId": str(uuid.uuid4()),
            "displayName": display_name,
            "identifierUris": list(identifier_uris or []),
        }
        self.credentials[object_id] = {}
        return object_id

    def calls(self, method: str) -> list[tuple[str, str, dict | None]]:
        return [r for r in self.requests if r[0] == method]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        method = request.method
        path = request.url.path
        body = json.loads(request.content) if request.content else None

        if self.on_request is not None:
            self.on_request(method, path, body)

        with self._lock:
            self.requests.append((method, path, body))
            if (method, path) in self.fail:
                status = self.fail[(method, path)]
                if status == 404:
                    return not_found(path)
                return httpx.Response(status, json={"error": {"code": "Boom", "message": "injected failure"}})
            if (method, path) in self.empty:
                return httpx.Response(200)
            if (method, path) in self.raw:
                return httpx.Response(200, text=self.raw[(method, path)])
            return self._route(method, path, body)

    def _route(self, method: str, path: str, body: dict | None) -> httpx.Response:
        if m := FIC_PATH.match(path):
            object_id, key_id = m.groups()
            creds = self.credentials.get(object_id, {})
            if key_id not in creds:
                return not_found(key_id)
            if method == "GET":
                return httpx.Response(200, json=creds[key_id])
            if method == "PATCH":
                creds[key_id].update(body or {})
                return httpx.Response(204)
            if method == "DELETE":
                del creds[key_id]
                return httpx.Response(204)

        if m := FIC_LIST_PATH.match(path):
            object_id = m.group(1)
            if object_id not in self.applications:
                return not_found(object_id)
            if method == "POST":
                cred = {"id": str(uuid.uuid4()), "description": None, **(body or {})}
                self.credentials[object_id][cred["id"]] = cred
                return httpx.Response(201, json=cred)

        if m := APP_PATH.match(path):
            object_id = m.group(1)
            if object_id not in self.applications:
                return not_found(object_id)
            if method == "GET":
                return httpx.Response(200, json=self.applications[object_id])
            if method == "PATCH":
                self.applications[object_id].update(body or {})
                return httpx.Response(204)

        if POLICY_LIST_PATH.match(path) and method == "POST":
            policy = {"id": str(uuid.uuid4()), **(body or {})}
            self.policies[policy["id"]] = policy
            return httpx.Response(201, json=policy)

        if m := POLICY_PATH.match(path):
            policy_id = m.group(1)
            if policy_id not in self.policies:
                return not_found(policy_id)
            if method == "GET":
                return httpx.Response(200, json=self.policies[policy_id])
            if method == "PATCH":
                self.policies[policy_id].update(body or {})
                return httpx.Response(204)
            if method == "DELETE":
                del self.policies[policy_id]
                return httpx.Response(204)

        return httpx.Response(405, json={"error": {"code": "MethodNotAllowed", "message": f"{method} {path}"}})


@pytest.fixture
def graph():
    return FakeGraph()


@pytest.fixture
def client(graph):
    c = GraphClient(ENDPOINT, "test-token", transport=httpx.MockTransport(graph))
    yield c
    c.close()


@pytest.fixture
def locks():
    return NamedLockRegistry()


@pytest.fixture
def provider(client, locks):
    return Provider(client, locks=locks, parallelism=4)
