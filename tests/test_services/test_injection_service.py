"""
Tests for Injection Service
Tests dose logging, edits, trash and pending entries
"""

import pytest
from datetime import date

from sqlalchemy.orm import Session

from services.injection_service import InjectionService
from tools.optimistic_buffer import OptimisticBufferRegistry


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def buffers():
    return OptimisticBufferRegistry()


@pytest.fixture
def injection_service(buffers):
    """Create injection service with its own buffers"""
    return InjectionService(buffers=buffers)


# =============================================================================
# Test Logging
# =============================================================================

class TestLogInjection:
    """Tests for log_injection"""

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_defaults_to_protocol_dose(
        self, injection_service, db_session: Session, user_id, test_protocol
    ):
        injection = await injection_service.log_injection(
            user_id, test_protocol.id, date(2024, 1, 8), db=db_session
        )
        assert injection.dose_ml == 0.5
        assert injection.concentration_mg_per_ml == 200.0
        assert injection.dose_mg == pytest.approx(100.0)

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_custom_dose(self, injection_service, db_session: Session, user_id, test_protocol):
        injection = await injection_service.log_injection(
            user_id, test_protocol.id, date(2024, 1, 8),
            dose_ml=0.4, concentration_mg_per_ml=250.0, notes="right delt",
            db=db_session
        )
        assert injection.dose_mg == pytest.approx(100.0)
        assert injection.notes == "right delt"

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_unknown_protocol(self, injection_service, db_session: Session, user_id):
        with pytest.raises(ValueError, match="not found"):
            await injection_service.log_injection(user_id, 999, date(2024, 1, 8), db=db_session)

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_other_users_protocol(self, injection_service, db_session: Session, test_protocol):
        with pytest.raises(ValueError):
            await injection_service.log_injection("someone-else", test_protocol.id, date(2024, 1, 8), db=db_session)

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_resolves_pending_entry(
        self, injection_service, buffers, db_session: Session, user_id, test_protocol
    ):
        """Test the pending entry is dropped once the write lands"""
        pending = injection_service.add_optimistic(
            user_id, str(test_protocol.id), date(2024, 1, 8), 0.5, 200.0
        )
        await injection_service.log_injection(
            user_id, test_protocol.id, date(2024, 1, 8),
            optimistic_id=pending.id, db=db_session
        )
        assert buffers.entries(user_id) == ()

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_resolves_pending_entry_on_failure(
        self, injection_service, buffers, db_session: Session, user_id
    ):
        pending = injection_service.add_optimistic(user_id, "999", date(2024, 1, 8), 0.5, 200.0)
        with pytest.raises(ValueError):
            await injection_service.log_injection(
                user_id, 999, date(2024, 1, 8), optimistic_id=pending.id, db=db_session
            )
        assert buffers.entries(user_id) == ()


# =============================================================================
# Test Edits and Trash
# =============================================================================

class TestInjectionEdits:
    """Tests for update_injection and set_trashed"""

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_update_recomputes_mg(self, injection_service, db_session: Session, test_injection):
        updated = await injection_service.update_injection(
            test_injection.id, dose_ml=0.75, db=db_session
        )
        assert updated.dose_mg == pytest.approx(150.0)

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_update_moves_day(self, injection_service, db_session: Session, test_injection):
        updated = await injection_service.update_injection(
            test_injection.id, day=date(2024, 1, 16), db=db_session
        )
        assert updated.date == date(2024, 1, 16)

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_update_rejects_zero_dose(self, injection_service, db_session: Session, test_injection):
        with pytest.raises(ValueError, match="Dose"):
            await injection_service.update_injection(test_injection.id, dose_ml=0, db=db_session)

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_trash_hides_from_default_listing(
        self, injection_service, db_session: Session, user_id, test_injection
    ):
        await injection_service.set_trashed(test_injection.id, True, db=db_session)

        assert await injection_service.list_injections(user_id, db=db_session) == []
        everything = await injection_service.list_injections(user_id, include_trashed=True, db=db_session)
        assert len(everything) == 1

        restored = await injection_service.set_trashed(test_injection.id, False, db=db_session)
        assert not restored.is_trashed
        assert restored.trashed_at is None


# =============================================================================
# Test Snapshots
# =============================================================================

class TestInjectionSnapshot:
    """Tests for get_injection_snapshot"""

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_snapshot_merges_pending_first(
        self, injection_service, db_session: Session, user_id, test_injection
    ):
        pending = injection_service.add_optimistic(user_id, "1", date(2024, 1, 22), 0.5, 200.0)

        snapshot = await injection_service.get_injection_snapshot(user_id, db=db_session)
        assert [i.id for i in snapshot] == [pending.id, str(test_injection.id)]
        assert snapshot[0].is_optimistic

        durable = await injection_service.get_injection_snapshot(
            user_id, include_optimistic=False, db=db_session
        )
        assert [i.id for i in durable] == [str(test_injection.id)]

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_snapshot_keeps_trashed(self, injection_service, db_session: Session, user_id, test_injection):
        await injection_service.set_trashed(test_injection.id, True, db=db_session)
        snapshot = await injection_service.get_injection_snapshot(user_id, db=db_session)
        assert snapshot[0].is_trashed

    @pytest.mark.asyncio
    @pytest.mark.integration
    async def test_reads_leave_no_buffer_behind(self, injection_service, buffers, db_session: Session):
        """Test reading arbitrary users never grows the pending-entry registry"""
        for user in ("ghost-1", "ghost-2", "ghost-3"):
            assert await injection_service.get_injection_snapshot(user, db=db_session) == ()
            assert injection_service.list_optimistic(user) == ()
            assert injection_service.resolve_optimistic(user, "optimistic-1-abc") is False
        assert len(buffers) == 0
