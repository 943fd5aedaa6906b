"""
Tests de los casos de uso del historial: ciclo de vida del job y lectura.
"""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from app.application.dto.revision_dto import RevisionSyncRequestDTO
from app.application.use_cases.revision_history_use_cases import RevisionHistoryUseCases
from app.infrastructure.database.models import ParsedRevisionHistoryModel
from app.infrastructure.external.airtable_revisions.types import (
    LoginCredentials,
    SyncRunResult,
    TargetOutcome,
)
from app.shared.exceptions.domain import RevisionHistoryNotFoundException, SyncJobNotFoundException
from app.shared.exceptions.revision_sync import NoBasesFoundError


async def _wait_for_jobs() -> None:
    await asyncio.gather(*list(RevisionHistoryUseCases._tasks))


def _request(**overrides) -> RevisionSyncRequestDTO:
    data = {"email": "ops@example.com", "password": "secreto", "limit": 5}
    data.update(overrides)
    return RevisionSyncRequestDTO(**data)


class TestSyncJobs:
    @pytest.mark.asyncio
    async def test_job_completes_with_result(self) -> None:
        calls = []

        def runner(credentials: LoginCredentials, **kwargs) -> SyncRunResult:
            calls.append((credentials, kwargs))
            return SyncRunResult(outcomes=[
                TargetOutcome(record_id="rec1", table_name="Tickets", success=True, changes_count=2),
                TargetOutcome(record_id="rec2", table_name="Tickets", success=False, error="HTTP 500"),
            ])

        use_cases = RevisionHistoryUseCases(runner=runner)

        started = await use_cases.start_sync(_request(mfaCode="654321"))
        assert started.status == "running"

        await _wait_for_jobs()
        status = await use_cases.get_job_status(started.job_id)

        assert status.status == "completed"
        assert status.completed_at is not None
        assert status.result["processedRecords"] == 2
        assert status.result["failedRecords"] == 1
        credentials, kwargs = calls[0]
        assert credentials.email == "ops@example.com"
        assert credentials.mfa_code == "654321"
        assert kwargs["cap"] == 5

    @pytest.mark.asyncio
    async def test_fatal_setup_marks_job_failed(self) -> None:
        def runner(credentials, **kwargs):
            raise NoBasesFoundError()

        use_cases = RevisionHistoryUseCases(runner=runner)

        started = await use_cases.start_sync(_request())
        await _wait_for_jobs()
        status = await use_cases.get_job_status(started.job_id)

        assert status.status == "failed"
        assert "No se encontraron bases" in status.error
        assert status.error_code == "NO_BASES_FOUND"
        assert status.result is None

    @pytest.mark.asyncio
    async def test_unexpected_error_marks_job_failed(self) -> None:
        def runner(credentials, **kwargs):
            raise RuntimeError("conexion perdida")

        use_cases = RevisionHistoryUseCases(runner=runner)

        started = await use_cases.start_sync(_request())
        await _wait_for_jobs()
        status = await use_cases.get_job_status(started.job_id)

        assert status.status == "failed"
        assert status.error == "conexion perdida"

    @pytest.mark.asyncio
    async def test_unknown_job(self) -> None:
        with pytest.raises(SyncJobNotFoundException):
            await RevisionHistoryUseCases().get_job_status("no-existe")

    @pytest.mark.asyncio
    async def test_old_finished_jobs_are_discarded_on_new_start(self) -> None:
        use_cases = RevisionHistoryUseCases(runner=lambda credentials, **kwargs: SyncRunResult(outcomes=[]))

        old = await use_cases.start_sync(_request())
        await _wait_for_jobs()
        RevisionHistoryUseCases._jobs[old.job_id].completed_at = datetime.now(timezone.utc) - timedelta(days=1)
        recent = await use_cases.start_sync(_request())
        await _wait_for_jobs()

        with pytest.raises(SyncJobNotFoundException):
            await use_cases.get_job_status(old.job_id)
        assert (await use_cases.get_job_status(recent.job_id)).status == "completed"


class TestGetHistory:
    @pytest.mark.asyncio
    async def test_returns_parsed_entries(self, db_session) -> None:
        db_session.add(
            ParsedRevisionHistoryModel(
                record_id="recT1",
                base_id="app1",
                table_id="tbl1",
                table_name="Tickets",
                revision_data=[
                    {
                        "uuid": "act1",
                        "issueId": "recT1",
                        "columnType": "Status",
                        "oldValue": "Open",
                        "newValue": "Closed",
                        "createdDate": "2024-03-01T12:30:00+00:00",
                        "authoredBy": "usrA",
                    }
                ],
                updated_at=datetime(2024, 3, 2, tzinfo=timezone.utc),
            )
        )
        await db_session.commit()

        history = await RevisionHistoryUseCases(db_session).get_history("recT1")

        assert history.count == 1
        entry = history.entries[0]
        assert entry.column_type == "Status"
        assert entry.new_value == "Closed"
        assert entry.created_date == datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_missing_record(self, db_session) -> None:
        with pytest.raises(RevisionHistoryNotFoundException):
            await RevisionHistoryUseCases(db_session).get_history("recNada")
