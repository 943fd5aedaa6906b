"""
Almacen clave -> valor con expiracion por tiempo.

Se usa para el mapa `state -> code_verifier` del flujo OAuth (PKCE): cada
entrada vale una sola vez y caduca a los pocos minutos. La expiracion se
comprueba al insertar y al consultar, sin timers ni tareas en background,
asi que no depende del ciclo de vida de FastAPI.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Generic, Optional, TypeVar

V = TypeVar("V")


@dataclass(frozen=True)
class _Entry(Generic[V]):
    value: V
    inserted_at: float


class ExpiringStore(Generic[V]):
    """
    Mapa thread-safe con TTL fijo por entrada.

    Args:
        ttl_seconds: Vida de cada entrada desde su insercion
        clock: Funcion de reloj monotono (inyectable para tests)
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds debe ser > 0")
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, _Entry[V]] = {}
        self._lock = threading.Lock()

    def _is_expired(self, entry: _Entry[V], now: float) -> bool:
        return now - entry.inserted_at >= self._ttl

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if self._is_expired(e, now)]
        for key in expired:
            del self._entries[key]

    def put(self, key: str, value: V) -> None:
        """Inserta (o reemplaza) una entrada y limpia las vencidas."""
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            self._entries[key] = _Entry(value=value, inserted_at=now)

    def get(self, key: str) -> Optional[V]:
        """Retorna el valor vigente o None si no existe o ya expiro."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_expired(entry, self._clock()):
                del self._entries[key]
                return None
            return entry.value

    def pop(self, key: str) -> Optional[V]:
        """Consume la entrada (uso unico). None si no existe o expiro."""
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is None or self._is_expired(entry, self._clock()):
                return None
            return entry.value

    def __len__(self) -> int:
        with self._lock:
            self._purge_expired(self._clock())
            return len(self._entries)
