"""
Seções críticas por estante: troca de layout e mudanças de posicionamento
da mesma estante nunca se intercalam. Estantes diferentes seguem em paralelo.
"""
import threading
from contextlib import contextmanager


class ShelfLockRegistry:
    """Um threading.Lock por estante, criado sob demanda e nunca descartado"""

    def __init__(self):
        self._lock = threading.Lock()
        self._locks = {}

    def _lock_for(self, shelf_id):
        with self._lock:
            lock = self._locks.get(shelf_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[shelf_id] = lock
            return lock

    @contextmanager
    def hold(self, shelf_id):
        lock = self._lock_for(shelf_id)
        with lock:
            yield


shelf_locks = ShelfLockRegistry()
