"""
按名称加锁

多个资源处理器可能被并发调用，而 Graph 对 identifierUris 这类字段没有
乐观并发控制 (没有 ETag)，两个并发的 "整体替换" 会互相覆盖。
这里按 (scope, name) 串行化对同一远端对象的写操作：

    locks = NamedLockRegistry()
    with locks.locked("azuread_application", object_id):
        ...  # 读取 -> 计算 -> PATCH

- 同一个 key 同时只有一个持有者
- 不同 key 互不阻塞
- 不保证公平性，等待没有超时
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


class NamedLockRegistry:
    """
    (scope, name) -> 互斥锁

    锁在第一次使用时创建，进程存活期间不删除；key 的数量受本次运行
    涉及的远端对象数量限制。
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str], threading.Lock] = {}

    def _lock_for(self, scope: str, name: str) -> threading.Lock:
        key = (scope, name)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    def acquire(self, scope: str, name: str) -> None:
        """阻塞直到获得 (scope, name) 的锁"""
        logger.debug('Locking "%s:%s"', scope, name)
        self._lock_for(scope, name).acquire()
        logger.debug('Locked "%s:%s"', scope, name)

    def release(self, scope: str, name: str) -> None:
        """
        释放锁

        Raises:
            RuntimeError: 锁未被持有
        """
        with self._guard:
            lock = self._locks.get((scope, name))
        if lock is None:
            raise RuntimeError(f'release of unknown lock "{scope}:{name}"')
        lock.release()
        logger.debug('Unlocked "%s:%s"', scope, name)

    @contextmanager
    def locked(self, scope: str, name: str) -> Iterator[None]:
        """获取锁，退出时 (包括异常) 一定释放"""
        self.acquire(scope, name)
        try:
            yield
        finally:
            self.release(scope, name)

    def is_locked(self, scope: str, name: str) -> bool:
        with self._guard:
            lock = self._locks.get((scope, name))
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
