"""
Process-wide holder for lazily built clients.

A ``ClientRegistry`` owns at most one instance produced by its factory:

    - ``get()`` builds the instance on first use, under a lock, and
      returns the same instance on every later call
    - ``install()`` places a prebuilt instance (tests, CLI)
    - ``reset()`` closes and drops the instance; the next ``get()`` rebuilds

``create_app()`` constructs one registry per external client and stores it
on ``app.state``; route dependencies read it from there. Nothing is hidden
in module globals, so two apps in one process do not share clients.

If the factory raises (for example on missing credentials) nothing is
cached and the error propagates to the caller; a later ``get()`` tries
again.
"""
from __future__ import annotations

import threading
from typing import Callable, Generic, Optional, TypeVar

from decible.core.logging import get_logger, info

_LOG = get_logger("decible.registry")

T = TypeVar("T")


class ClientRegistry(Generic[T]):
    def __init__(self, name: str, factory: Callable[[], T]):
        self.name = name
        self._factory = factory
        self._instance: Optional[T] = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._instance is not None

    def get(self) -> T:
        instance = self._instance
        if instance is not None:
            return instance
        with self._lock:
            if self._instance is None:
                self._instance = self._factory()
                info(_LOG, "client_initialized", client=self.name)
            return self._instance

    def install(self, instance: T) -> None:
        with self._lock:
            self._instance = instance

    def reset(self) -> None:
        with self._lock:
            instance, self._instance = self._instance, None
        close = getattr(instance, "close", None)
        if callable(close):
            close()
