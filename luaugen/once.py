import threading
from typing import Callable


class Once:
    """Calls the wrapped function on the first call only; later calls are
    no-ops, even if the first one raised. Used to start tracing once per
    process.
    """

    def __init__(self, f: Callable):
        self._f = f
        self._lock = threading.Lock()
        self._called = False

    @property
    def called(self) -> bool:
        return self._called

    def __call__(self, *args, **kwargs) -> None:
        with self._lock:
            if self._called:
                return
            try:
                self._f(*args, **kwargs)
            finally:
                self._called = True
