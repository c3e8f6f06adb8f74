#!/usr/bin/env python3
"""
Azure AD Graph Resources REST API

每个资源类型暴露 validate / plan / create / read / update / delete / import。
进程内共享一个 NamedLockRegistry，并发请求对同一应用的写操作互斥。
"""
from fastapi import Depends, FastAPI, HTTPException
from pydantic import BaseModel

from azuread_resources import (
    ConfigError,
    Diagnostic,
    NamedLockRegistry,
    NotFoundError,
    OperationTimeoutError,
    Provider,
    ProviderConfig,
    ResourceData,
    ResourceError,
)

app = FastAPI(title="Azure AD Graph Resources API", version="1.0.0")

LOCKS = NamedLockRegistry()


def get_provider():
    try:
        config = ProviderConfig.load()
    except ConfigError as e:
        diag = Diagnostic(severity="error", summary="provider configuration error", detail=str(e))
        raise HTTPException(status_code=500, detail=diag.to_dict()) from e
    provider = Provider(config.create_client(), locks=LOCKS, parallelism=config.parallelism)
    try:
        yield provider
    finally:
        provider.client.close()


def to_http_error(e: ResourceError) -> HTTPException:
    if isinstance(e, NotFoundError):
        status = 404
    elif isinstance(e, OperationTimeoutError):
        status = 504
    else:
        status = 400
    return HTTPException(status_code=status, detail=e.to_diagnostic().to_dict())


def state_to_dict(d: ResourceData) -> dict:
    return {"id": d.id, "attributes": d.attributes}


# ========== 请求模型 ==========

class ConfigRequest(BaseModel):
    config: dict


class PlanRequest(BaseModel):
    prior: dict | None = None
    config: dict | None = None


class StateRequest(BaseModel):
    id: str
    attributes: dict = {}


class UpdateRequest(BaseModel):
    id: str
    prior: dict
    config: dict


class ImportRequest(BaseModel):
    id: str


# ========== 资源 API ==========

@app.get("/resources")
def list_resources(provider: Provider = Depends(get_provider)):
    """列出支持的资源类型及字段"""
    return {
        type_name: {
            key: {
                "type": f.type,
                "required": f.required,
                "computed": f.computed,
                "forceNew": f.force_new,
                "description": f.description,
            }
            for key, f in provider.handler(type_name).schema.items()
        }
        for type_name in provider.resource_types
    }


@app.post("/resources/{type_name}/validate")
def validate_resource(type_name: str, req: ConfigRequest, provider: Provider = Depends(get_provider)):
    """校验配置"""
    try:
        return {"config": provider.validate(type_name, req.config)}
    except ResourceError as e:
        raise to_http_error(e)


@app.post("/resources/{type_name}/plan")
def plan_resource(type_name: str, req: PlanRequest, provider: Provider = Depends(get_provider)):
    """计算动作"""
    try:
        config = provider.validate(type_name, req.config) if req.config is not None else None
        return {"action": provider.plan(type_name, req.prior, config).value}
    except ResourceError as e:
        raise to_http_error(e)


@app.post("/resources/{type_name}/create")
def create_resource(type_name: str, req: ConfigRequest, provider: Provider = Depends(get_provider)):
    """创建资源"""
    try:
        return state_to_dict(provider.create(type_name, req.config))
    except ResourceError as e:
        raise to_http_error(e)


@app.post("/resources/{type_name}/read")
def read_resource(type_name: str, req: StateRequest, provider: Provider = Depends(get_provider)):
    """读取资源，远端已删除时 id 为空"""
    try:
        return state_to_dict(provider.read(type_name, req.id, req.attributes))
    except ResourceError as e:
        raise to_http_error(e)


@app.post("/resources/{type_name}/update")
def update_resource(type_name: str, req: UpdateRequest, provider: Provider = Depends(get_provider)):
    """更新资源"""
    try:
        return state_to_dict(provider.update(type_name, req.id, req.prior, req.config))
    except ResourceError as e:
        raise to_http_error(e)


@app.post("/resources/{type_name}/delete")
def delete_resource(type_name: str, req: StateRequest, provider: Provider = Depends(get_provider)):
    """删除资源"""
    try:
        provider.delete(type_name, req.id, req.attributes)
        return {"message": f"已删除: {type_name} {req.id}"}
    except ResourceError as e:
        raise to_http_error(e)


@app.post("/resources/{type_name}/import")
def import_resource(type_name: str, req: ImportRequest, provider: Provider = Depends(get_provider)):
    """导入已存在的远端对象"""
    try:
        return state_to_dict(provider.import_resource(type_name, req.id))
    except ResourceError as e:
        raise to_http_error(e)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
