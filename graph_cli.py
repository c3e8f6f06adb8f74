#!/usr/bin/env python3
"""
Azure AD Graph Resources CLI
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path

from azuread_resources import (
    ApplyResult,
    ConfigError,
    Provider,
    ProviderConfig,
    ResourceConfig,
    ResourceError,
    ResourceState,
)

STATE_FILE = "graph-state.json"
RESOURCES_FILE = "resources.json"
LOG_ENV = "AZUREAD_LOG"


def load_json(file: str) -> dict | list:
    path = Path(file)
    if not path.exists():
        return []
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def load_resources(file: str) -> list[ResourceConfig]:
    data = load_json(file)
    items = data.get("resources", []) if isinstance(data, dict) else data
    return [ResourceConfig.from_dict(r) for r in items]


def load_state(file: str) -> list[ResourceState]:
    data = load_json(file)
    items = data.get("resources", []) if isinstance(data, dict) else data
    return [ResourceState.from_dict(r) for r in items]


def save_state(file: str, state: list[ResourceState]):
    with open(file, 'w', encoding='utf-8') as f:
        json.dump({"resources": [s.to_dict() for s in state]}, f, indent=2, ensure_ascii=False)


def get_provider(args) -> Provider:
    try:
        config = ProviderConfig.load(args.config)
    except ConfigError as e:
        print(f"错误: {e}")
        sys.exit(1)
    return Provider(config.create_client(), parallelism=args.parallelism or config.parallelism)


def setup_logging(verbose: bool):
    level = os.environ.get(LOG_ENV, "DEBUG" if verbose else "WARNING").upper()
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def print_result(result: ApplyResult):
    for address in result.unchanged:
        print(f"  ○ {address}")
    for address in result.created:
        print(f"  + {address} [id: {result.details[address]['id']}]")
    for address in result.updated:
        print(f"  ~ {address} [id: {result.details[address]['id']}]")
    for address in result.replaced:
        print(f"  ± {address} [id: {result.details[address]['id']}]")
    for address in result.deleted:
        print(f"  - {address}")
    for err in result.errors:
        print(f"  ✗ {err}")

    print(f"\n创建:{len(result.created)} 更新:{len(result.updated)} 替换:{len(result.replaced)} "
          f"删除:{len(result.deleted)} 无变化:{len(result.unchanged)} 错误:{len(result.errors)}")


# ========== 命令 ==========

def cmd_resources(args):
    provider = get_provider(args)
    for service in provider.registrations:
        print(f"{service.name} [{', '.join(service.website_categories)}]")
        for type_name in sorted(service.supported_resources()):
            print(f"  {type_name}")
            for key, f in provider.handler(type_name).schema.items():
                flags = "required" if f.required else "computed" if f.computed else "optional"
                if f.force_new:
                    flags += ", force new"
                print(f"    - {key} ({f.type}, {flags})")
    provider.client.close()


def cmd_validate(args):
    provider = get_provider(args)
    has_error = False
    for cfg in load_resources(args.file):
        try:
            provider.validate(cfg.type, cfg.config)
            print(f"✓ {cfg.address}")
        except ResourceError as e:
            print(f"✗ {cfg.address}: {e}")
            has_error = True
    provider.client.close()
    return 1 if has_error else 0


def cmd_plan(args):
    provider = get_provider(args)
    try:
        actions = provider.plan_all(load_resources(args.file), load_state(args.state), refresh=not args.no_refresh)
    except ResourceError as e:
        print(f"✗ {e}")
        return 1
    finally:
        provider.client.close()

    symbols = {"create": "+", "update": "~", "replace": "±", "delete": "-", "noop": "○"}
    for address, action in actions.items():
        print(f"  {symbols[action.value]} {address} ({action.value})")
    changes = sum(1 for a in actions.values() if a.value != "noop")
    print(f"\n{changes} 个资源需要变更")


def cmd_apply(args):
    provider = get_provider(args)
    resources = load_resources(args.file)
    print(f"应用 {len(resources)} 个资源...\n")
    try:
        result, state = provider.apply(resources, load_state(args.state), refresh=not args.no_refresh)
    finally:
        provider.client.close()
    save_state(args.state, state)
    print_result(result)
    return 0 if result.ok else 1


def cmd_refresh(args):
    provider = get_provider(args)
    try:
        result, state = provider.refresh(load_state(args.state))
    finally:
        provider.client.close()
    save_state(args.state, state)
    print_result(result)
    return 0 if result.ok else 1


def cmd_destroy(args):
    provider = get_provider(args)
    state = load_state(args.state)
    print(f"删除 {len(state)} 个资源...\n")
    try:
        result, remaining = provider.destroy(state)
    finally:
        provider.client.close()
    save_state(args.state, remaining)
    print_result(result)
    return 0 if result.ok else 1


def cmd_import(args):
    provider = get_provider(args)
    state = load_state(args.state)
    address = f"{args.type}.{args.name}"
    if any(s.address == address for s in state):
        print(f"✗ {address} 已在状态中")
        provider.client.close()
        return 1
    try:
        d = provider.import_resource(args.type, args.id)
    except ResourceError as e:
        print(f"✗ {address}: {e}")
        return 1
    finally:
        provider.client.close()
    state.append(ResourceState(args.type, args.name, d.id, d.attributes))
    save_state(args.state, state)
    print(f"✓ 导入: {address} [id: {d.id}]")


# ========== 主函数 ==========

def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(prog='graph-cli', description='Azure AD Graph Resources CLI')
    parser.add_argument('--config', default='graph-config.json', help='Provider 配置文件')
    parser.add_argument('--state', default=STATE_FILE, help='状态文件')
    parser.add_argument('--parallelism', type=int, default=None, help='并发数')
    parser.add_argument('-v', '--verbose', action='store_true', help='输出调试日志')
    subparsers = parser.add_subparsers(dest='command', help='命令')

    p = subparsers.add_parser('resources', help='列出支持的资源类型')
    p.set_defaults(func=cmd_resources)

    p = subparsers.add_parser('validate', help='校验资源配置')
    p.add_argument('file', nargs='?', default=RESOURCES_FILE, help='JSON 文件')
    p.set_defaults(func=cmd_validate)

    p = subparsers.add_parser('plan', help='预览变更')
    p.add_argument('file', nargs='?', default=RESOURCES_FILE, help='JSON 文件')
    p.add_argument('--no-refresh', action='store_true', help='不读取远端状态')
    p.set_defaults(func=cmd_plan)

    p = subparsers.add_parser('apply', help='应用配置')
    p.add_argument('file', nargs='?', default=RESOURCES_FILE, help='JSON 文件')
    p.add_argument('--no-refresh', action='store_true', help='不读取远端状态')
    p.set_defaults(func=cmd_apply)

    p = subparsers.add_parser('refresh', help='用远端状态更新状态文件')
    p.set_defaults(func=cmd_refresh)

    p = subparsers.add_parser('destroy', help='删除状态中的所有资源')
    p.set_defaults(func=cmd_destroy)

    p = subparsers.add_parser('import', help='导入已存在的远端对象')
    p.add_argument('type', help='资源类型')
    p.add_argument('name', help='资源名称')
    p.add_argument('id', help='远端 ID (UUID，联合身份凭据为 objectId/keyId)')
    p.set_defaults(func=cmd_import)

    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args) or 0


if __name__ == "__main__":
    sys.exit(main())
