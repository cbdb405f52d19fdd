# classvideo/locks.py
import threading
from contextlib import contextmanager

_registry_lock = threading.Lock()
# (namespace, key) -> [lock, 잠금을 보유하거나 대기 중인 스레드 수]
_locks = {}


def _acquire_entry(pair):
    with _registry_lock:
        entry = _locks.get(pair)
        if entry is None:
            entry = [threading.Lock(), 0]
            _locks[pair] = entry
        entry[1] += 1
        return entry[0]


def _release_entry(pair):
    """사용자가 없어진 잠금은 레지스트리에서 제거"""
    with _registry_lock:
        entry = _locks[pair]
        entry[1] -= 1
        if entry[1] == 0:
            del _locks[pair]


def active_lock_count():
    with _registry_lock:
        return len(_locks)


@contextmanager
def hold(*pairs):
    """
    여러 키 잠금을 정렬된 순서로 획득.

    같은 프로세스 안에서만 직렬화되며 다중 인스턴스 간에는 보장되지 않습니다.
    """
    ordered = sorted(set(pairs), key=lambda pair: (pair[0], str(pair[1])))
    acquired = []
    try:
        for pair in ordered:
            lock = _acquire_entry(pair)
            try:
                lock.acquire()
            except BaseException:
                _release_entry(pair)
                raise
            acquired.append((pair, lock))
        yield
    finally:
        for pair, lock in reversed(acquired):
            lock.release()
            _release_entry(pair)
