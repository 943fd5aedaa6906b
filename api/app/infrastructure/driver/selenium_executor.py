"""
Ejecutor de jobs de sincronizacion en un thread dedicado.

Los jobs de sync (login con Selenium + requests secuenciales + psycopg) son
bloqueantes y largos. Se ejecutan en un ThreadPoolExecutor propio para no
bloquear el event loop de asyncio: el servidor FastAPI/uvicorn sigue
atendiendo requests (healthchecks, polling de jobs) mientras corre el sync.

Caracteristicas:
- Un unico worker: como maximo un job de sync a la vez en el proceso; los
  siguientes quedan encolados
- Threads con nombre prefijado para facil identificacion en logs/debugging

Uso:
    from app.infrastructure.driver.selenium_executor import run_sync_job

    result = await run_sync_job(run_revision_sync, credentials, dsn=dsn)
"""
import asyncio
import atexit
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Any, Callable, TypeVar

from loguru import logger


T = TypeVar("T")

SYNC_MAX_WORKERS = 1
SYNC_THREAD_PREFIX = "airtable-sync-"

_sync_executor = ThreadPoolExecutor(
    max_workers=SYNC_MAX_WORKERS,
    thread_name_prefix=SYNC_THREAD_PREFIX
)


def shutdown_sync_executor(wait: bool = True) -> None:
    """Cierra el executor de sync; los jobs encolados que no empezaron se cancelan."""
    logger.info("Cerrando ThreadPoolExecutor de sync...")
    _sync_executor.shutdown(wait=wait, cancel_futures=True)
    logger.info("ThreadPoolExecutor de sync cerrado")


# Registrar cleanup al terminar la aplicacion
atexit.register(shutdown_sync_executor)


async def run_sync_job(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """
    Ejecuta una funcion bloqueante de sync en el thread dedicado.

    Args:
        func: Funcion sincrona a ejecutar
        *args: Argumentos posicionales para la funcion
        **kwargs: Argumentos con nombre para la funcion

    Returns:
        El resultado de la funcion ejecutada

    Raises:
        Cualquier excepcion que la funcion original lance
    """
    if kwargs:
        # Usar partial para incluir kwargs
        func = partial(func, **kwargs)

    loop = asyncio.get_running_loop()
    try:
        return await loop.run_in_executor(_sync_executor, func, *args)
    except Exception as e:
        logger.error(f"Error en job de sync (thread): {type(e).__name__}: {e}")
        raise


def get_executor_stats() -> dict:
    """
    Retorna estadisticas del executor de sync.

    Returns:
        Dict con max_workers, prefijo de threads y jobs en cola
    """
    return {
        "max_workers": SYNC_MAX_WORKERS,
        "thread_name_prefix": SYNC_THREAD_PREFIX,
        "queued_jobs": _sync_executor._work_queue.qsize(),
    }
