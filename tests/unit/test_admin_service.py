"""Unit tests for AdminService over the in-memory ledger."""

from src.bm_admin.application.service import AdminService
from src.bm_ledger.infrastructure.memory import MemorySession
from tests.helpers import ADMIN, ALICE, BOB, SIG, make_draft


async def _seed(engine, store) -> tuple[int, int, int]:
    db = MemorySession()
    for wallet in (ADMIN, ALICE, BOB):
        await store.upsert_user(db, wallet, 0)
    await db.commit()

    open_market = await engine.create_market(MemorySession(), ALICE, make_draft())
    active = await engine.create_market(MemorySession(), ALICE, make_draft())
    await engine.join_market(MemorySession(), BOB, active.id, SIG)
    cancelled = await engine.create_market(MemorySession(), ALICE, make_draft())
    await engine.cancel_market(MemorySession(), ALICE, cancelled.id)
    return open_market.id, active.id, cancelled.id


class TestAdminService:
    async def test_pending_settlement_lists_active_markets(self, engine, store) -> None:
        _, active_id, _ = await _seed(engine, store)
        svc = AdminService(engine=engine, repo=store)

        result = await svc.list_pending_settlement(MemorySession())

        assert [m.id for m in result.items] == [active_id]

    async def test_list_markets_all(self, engine, store) -> None:
        ids = await _seed(engine, store)
        svc = AdminService(engine=engine, repo=store)

        result = await svc.list_markets(MemorySession())

        assert {m.id for m in result.items} == set(ids)

    async def test_settle_returns_summary(self, engine, store) -> None:
        _, active_id, _ = await _seed(engine, store)
        svc = AdminService(engine=engine, repo=store)

        result = await svc.settle_market(MemorySession(), ADMIN, active_id, "counterparty_wins")

        assert result.market.status == "settled"
        assert result.settlement.payout_recipient == BOB
        assert result.settlement.platform_fee_lamports == 4_000_000
        assert sorted(t.type for t in result.transactions) == ["fee", "payout"]

    async def test_refund_queue(self, engine, store) -> None:
        _, active_id, cancelled_id = await _seed(engine, store)
        svc = AdminService(engine=engine, repo=store)
        await svc.settle_market(MemorySession(), ADMIN, active_id, "refund")

        refunds = await svc.list_refunds(MemorySession(), pending_only=True)

        assert len(refunds) == 3
        assert {r["market_id"] for r in refunds} == {active_id, cancelled_id}
        assert all(r["payment_signature"] is None for r in refunds)
