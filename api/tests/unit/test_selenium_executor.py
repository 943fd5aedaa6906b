"""
Tests unitarios para selenium_executor.py.

Verifica el thread dedicado de sync: ejecucion fuera del event loop,
argumentos, propagacion de errores y serializacion de jobs.
"""
from __future__ import annotations

import asyncio
import threading
import time
from typing import List

import pytest

from app.infrastructure.driver.selenium_executor import (
    SYNC_MAX_WORKERS,
    SYNC_THREAD_PREFIX,
    get_executor_stats,
    run_sync_job,
)


class TestRunSyncJob:
    """Tests para la funcion run_sync_job()."""

    @pytest.mark.asyncio
    async def test_executes_function(self) -> None:
        """Verifica que ejecuta la funcion y retorna el resultado."""
        result = await run_sync_job(lambda: "resultado")

        assert result == "resultado"

    @pytest.mark.asyncio
    async def test_with_args_and_kwargs(self) -> None:
        """Verifica que pasa args y kwargs (via partial)."""
        def build(name: str, prefix: str = "") -> str:
            return f"{prefix}{name}"

        result = await run_sync_job(build, "test", prefix="hello_")

        assert result == "hello_test"

    @pytest.mark.asyncio
    async def test_propagates_exception(self) -> None:
        """Verifica que propaga excepciones de la funcion ejecutada."""
        def function_that_raises() -> None:
            raise ValueError("Error de prueba")

        with pytest.raises(ValueError, match="Error de prueba"):
            await run_sync_job(function_that_raises)

    @pytest.mark.asyncio
    async def test_runs_in_named_thread(self) -> None:
        """Verifica que la funcion corre en el thread de sync, no en el del event loop."""
        names: List[str] = []

        await run_sync_job(lambda: names.append(threading.current_thread().name))

        assert names[0].startswith(SYNC_THREAD_PREFIX)
        assert names[0] != threading.current_thread().name

    @pytest.mark.asyncio
    async def test_jobs_never_overlap(self) -> None:
        """Dos jobs lanzados a la vez se ejecutan uno detras del otro."""
        events: List[str] = []

        def job(name: str) -> str:
            events.append(f"start-{name}")
            time.sleep(0.05)
            events.append(f"end-{name}")
            return name

        returned = await asyncio.gather(run_sync_job(job, "a"), run_sync_job(job, "b"))

        assert sorted(returned) == ["a", "b"]
        assert events[0].startswith("start-")
        assert events[1] == events[0].replace("start", "end")


class TestGetExecutorStats:
    def test_structure(self) -> None:
        stats = get_executor_stats()

        assert stats["max_workers"] == SYNC_MAX_WORKERS == 1
        assert stats["thread_name_prefix"] == SYNC_THREAD_PREFIX
        assert stats["queued_jobs"] >= 0
