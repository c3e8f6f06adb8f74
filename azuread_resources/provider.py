"""
Provider

把声明的资源配置与本地状态对比，计算每个资源的动作并调用对应的处理器：
- plan: create / update / replace / delete / noop
- apply: 并发执行 (ThreadPoolExecutor)，同一远端对象的写操作由 NamedLockRegistry 串行化
- 每个操作有固定时限，超时抛出 OperationTimeoutError
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from enum import Enum

from .client import GraphClient
from .diagnostics import Diagnostic, IntegrityError, NotFoundError, OperationTimeoutError, ResourceError, ValidationError
from .locks import NamedLockRegistry
from .models import ApplyResult
from .registration import SUPPORTED_SERVICES, ServiceRegistration, supported_resources
from .resources import ResourceData, ResourceHandler
from .schema import validate_config, values_equal

logger = logging.getLogger(__name__)

DEFAULT_PARALLELISM = 10


class PlanAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"
    NOOP = "noop"


@dataclass
class ResourceConfig:
    """一个声明的资源块"""
    type: str
    name: str
    config: dict = field(default_factory=dict)

    @property
    def address(self) -> str:
        return f"{self.type}.{self.name}"

    @classmethod
    def from_dict(cls, data: dict) -> "ResourceConfig":
        return cls(type=data["type"], name=data["name"], config=data.get("config") or {})


@dataclass
class ResourceState:
    """状态文件中的一个资源"""
    type: str
    name: str
    id: str
    attributes: dict = field(default_factory=dict)

    @property
    def address(self) -> str:
        return f"{self.type}.{self.name}"

    def to_dict(self) -> dict:
        return {"type": self.type, "name": self.name, "id": self.id, "attributes": self.attributes}

    @classmethod
    def from_dict(cls, data: dict) -> "ResourceState":
        return cls(
            type=data["type"],
            name=data["name"],
            id=data["id"],
            attributes=data.get("attributes") or {},
        )


class Provider:
    """
    资源 Provider

    locks 由调用方注入，同一进程内所有 Provider 应共享同一个 registry，
    否则不同 Provider 对同一应用的写操作不会互斥。
    """

    def __init__(
        self,
        client: GraphClient,
        locks: NamedLockRegistry | None = None,
        parallelism: int = DEFAULT_PARALLELISM,
        registrations: list[ServiceRegistration] | None = None,
    ):
        self.client = client
        self.locks = locks if locks is not None else NamedLockRegistry()
        self.parallelism = max(1, parallelism)
        self.registrations = registrations or SUPPORTED_SERVICES
        self._handlers: dict[str, ResourceHandler] = {
            type_name: handler_cls(client, self.locks)
            for type_name, handler_cls in supported_resources(self.registrations).items()
        }

    @property
    def resource_types(self) -> list[str]:
        return sorted(self._handlers)

    def handler(self, type_name: str) -> ResourceHandler:
        try:
            return self._handlers[type_name]
        except KeyError:
            raise ValidationError(f"unsupported resource type {type_name!r}", path="type") from None

    def validate(self, type_name: str, config: dict) -> dict:
        """校验配置，返回规范化后的配置"""
        return validate_config(self.handler(type_name).schema, config)

    # ============ 计划 ============

    def plan(self, type_name: str, prior: dict | None, config: dict | None) -> PlanAction:
        """
        计算动作

        Args:
            prior: 当前状态的属性，None 表示不存在
            config: 规范化后的配置，None 表示已从配置中移除
        """
        if config is None:
            return PlanAction.DELETE if prior is not None else PlanAction.NOOP
        if prior is None:
            return PlanAction.CREATE

        changed = False
        for key, f in self.handler(type_name).schema.items():
            if f.computed and not f.required:
                continue
            if not values_equal(f, config.get(key), prior.get(key)):
                if f.force_new:
                    return PlanAction.REPLACE
                changed = True
        return PlanAction.UPDATE if changed else PlanAction.NOOP

    # ============ 单个资源操作 ============

    def _run(self, handler: ResourceHandler, operation: str, d: ResourceData) -> None:
        """在固定时限内执行处理器的一个阶段"""
        seconds = handler.timeouts.for_operation(operation)
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"{handler.type_name}-{operation}")
        future = executor.submit(getattr(handler, operation), d)
        try:
            future.result(timeout=seconds)
        except FutureTimeoutError:
            raise OperationTimeoutError(
                f"{operation} of {handler.type_name} {d.id or '(new)'} did not complete within {seconds:g}s"
            ) from None
        finally:
            executor.shutdown(wait=False)

    def create(self, type_name: str, config: dict) -> ResourceData:
        handler = self.handler(type_name)
        d = ResourceData(attributes=dict(self.validate(type_name, config)))
        self._run(handler, "create", d)
        if d.removed:
            raise IntegrityError(f"{type_name} was not found after create")
        return d

    def read(self, type_name: str, id: str, attributes: dict | None = None) -> ResourceData:
        """读取远端状态，资源已不存在时返回 removed 的 ResourceData"""
        handler = self.handler(type_name)
        d = ResourceData(id=id, attributes=dict(attributes or {}))
        self._run(handler, "read", d)
        return d

    def update(self, type_name: str, id: str, prior: dict, config: dict) -> ResourceData:
        handler = self.handler(type_name)
        attributes = {k: prior.get(k) for k, f in handler.schema.items() if f.computed and not f.required}
        attributes.update(self.validate(type_name, config))
        d = ResourceData(id=id, attributes=attributes, prior=dict(prior))
        self._run(handler, "update", d)
        if d.removed:
            raise NotFoundError(f"{type_name} with ID {id!r} was not found after update", path="id")
        return d

    def delete(self, type_name: str, id: str, attributes: dict | None = None) -> None:
        handler = self.handler(type_name)
        self._run(handler, "delete", ResourceData(id=id, attributes=dict(attributes or {})))

    def import_resource(self, type_name: str, id: str) -> ResourceData:
        """导入已存在的远端对象"""
        handler = self.handler(type_name)
        handler.validate_import_id(id)
        d = self.read(type_name, id)
        if d.removed:
            raise NotFoundError(f"cannot import non-existent remote object {id!r}", path="id")
        return d

    # ============ 批量操作 ============

    def _apply_one(self, cfg: ResourceConfig, prior: ResourceState | None, refresh: bool) -> tuple[PlanAction, ResourceState | None]:
        current = prior
        if prior is not None and refresh:
            current = self._refresh_one(prior)

        config = self.validate(cfg.type, cfg.config)
        action = self.plan(cfg.type, current.attributes if current else None, config)
        logger.info("%s: %s", cfg.address, action.value)

        if action == PlanAction.NOOP:
            return action, current
        if action == PlanAction.REPLACE:
            self.delete(cfg.type, current.id, current.attributes)
            d = self.create(cfg.type, config)
        elif action == PlanAction.CREATE:
            d = self.create(cfg.type, config)
        else:
            d = self.update(cfg.type, current.id, current.attributes, config)
        return action, ResourceState(cfg.type, cfg.name, d.id, d.attributes)

    def _destroy_one(self, prior: ResourceState) -> tuple[PlanAction, ResourceState | None]:
        self.delete(prior.type, prior.id, prior.attributes)
        return PlanAction.DELETE, None

    def _refresh_one(self, prior: ResourceState) -> ResourceState | None:
        d = self.read(prior.type, prior.id, prior.attributes)
        if d.removed:
            logger.info("%s: not found remotely, removing from state", prior.address)
            return None
        return ResourceState(prior.type, prior.name, d.id, d.attributes)

    def _execute(self, jobs: dict, state_by_address: dict[str, ResourceState]) -> tuple[ApplyResult, list[ResourceState]]:
        """
        并发执行 {address: callable}

        失败的资源保留原状态，不提交部分结果
        """
        result = ApplyResult()
        new_state = dict(state_by_address)

        with ThreadPoolExecutor(max_workers=self.parallelism) as pool:
            futures = {address: pool.submit(job) for address, job in jobs.items()}

        for address, future in sorted(futures.items()):
            try:
                action, state = future.result()
            except ResourceError as e:
                diag = e.to_diagnostic()
                logger.error("%s: %s", address, diag)
                result.errors.append(f"{address}: {diag}")
                result.details[address] = {"diagnostic": diag.to_dict()}
                continue
            except Exception as e:
                # 未预期的错误只影响本资源，其余资源的结果照常提交
                logger.exception("%s: unexpected error", address)
                diag = Diagnostic(severity="error", summary=f"unexpected error: {type(e).__name__}", detail=str(e))
                result.errors.append(f"{address}: {diag}")
                result.details[address] = {"diagnostic": diag.to_dict()}
                continue

            if state is None:
                new_state.pop(address, None)
            else:
                new_state[address] = state
                result.details[address] = {"id": state.id}

            {
                PlanAction.CREATE: result.created,
                PlanAction.UPDATE: result.updated,
                PlanAction.REPLACE: result.replaced,
                PlanAction.DELETE: result.deleted,
                PlanAction.NOOP: result.unchanged,
            }[action].append(address)

        return result, [new_state[a] for a in sorted(new_state)]

    def apply(
        self,
        resources: list[ResourceConfig],
        state: list[ResourceState],
        refresh: bool = True,
    ) -> tuple[ApplyResult, list[ResourceState]]:
        """
        使远端与配置一致

        Returns:
            (执行结果, 新的状态列表)
        """
        state_by_address = {s.address: s for s in state}
        jobs = {}
        result = ApplyResult()

        for cfg in resources:
            if cfg.address in jobs:
                result.errors.append(f"{cfg.address}: duplicate resource address")
                continue
            prior = state_by_address.get(cfg.address)
            jobs[cfg.address] = lambda cfg=cfg, prior=prior: self._apply_one(cfg, prior, refresh)

        for address, prior in state_by_address.items():
            if address not in jobs:
                jobs[address] = lambda prior=prior: self._destroy_one(prior)

        executed, new_state = self._execute(jobs, state_by_address)
        executed.errors = result.errors + executed.errors
        return executed, new_state

    def plan_all(self, resources: list[ResourceConfig], state: list[ResourceState], refresh: bool = True) -> dict[str, PlanAction]:
        """只计算动作，不修改远端"""
        state_by_address = {s.address: s for s in state}
        actions: dict[str, PlanAction] = {}
        for cfg in resources:
            prior = state_by_address.get(cfg.address)
            if prior is not None and refresh:
                prior = self._refresh_one(prior)
            config = self.validate(cfg.type, cfg.config)
            actions[cfg.address] = self.plan(cfg.type, prior.attributes if prior else None, config)
        for address in state_by_address:
            actions.setdefault(address, PlanAction.DELETE)
        return dict(sorted(actions.items()))

    def refresh(self, state: list[ResourceState]) -> tuple[ApplyResult, list[ResourceState]]:
        """读取所有资源的远端状态，远端已删除的资源从状态中移除"""
        state_by_address = {s.address: s for s in state}

        def job(prior: ResourceState):
            current = self._refresh_one(prior)
            return (PlanAction.NOOP if current else PlanAction.DELETE), current

        jobs = {address: (lambda prior=prior: job(prior)) for address, prior in state_by_address.items()}
        return self._execute(jobs, state_by_address)

    def destroy(self, state: list[ResourceState]) -> tuple[ApplyResult, list[ResourceState]]:
        """删除状态中的所有资源，返回删除失败而保留的资源"""
        state_by_address = {s.address: s for s in state}
        jobs = {address: (lambda prior=prior: self._destroy_one(prior)) for address, prior in state_by_address.items()}
        return self._execute(jobs, state_by_address)
