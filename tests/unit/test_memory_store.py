"""Unit tests for InMemoryLedgerStore and its MemorySession undo journal."""

import asyncio
from datetime import timedelta

import pytest

from src.bm_common.datetime_utils import utc_now
from src.bm_common.errors import InternalError
from src.bm_ledger.domain.models import NewMarket
from src.bm_ledger.infrastructure.memory import InMemoryLedgerStore, MemorySession


def _new_market(creator: str = "creator") -> NewMarket:
    return NewMarket(
        title="Rain tomorrow",
        description=None,
        category="weather",
        stake_amount=100_000_000,
        counterparty_stake_amount=100_000_000,
        odds_bps=10_000,
        creator_id=creator,
        expiry_date=utc_now() + timedelta(days=1),
        payment_signature="sig-creator-0001",
    )


class TestMemorySession:
    async def test_rollback_undoes_writes(self, store: InMemoryLedgerStore) -> None:
        db = MemorySession()
        await store.upsert_user(db, "alice", 100)
        market = await store.create_market(db, _new_market("alice"))
        await store.create_transaction(db, "alice", market.id, "stake", 100, "stake")
        assert db.dirty

        await db.rollback()

        check = MemorySession()
        assert await store.get_user(check, "alice") is None
        assert await store.get_market(check, market.id) is None
        assert await store.get_user_transactions(check, "alice") == []
        assert not db.dirty

    async def test_commit_keeps_writes(self, store: InMemoryLedgerStore) -> None:
        db = MemorySession()
        await store.upsert_user(db, "alice", 100)
        await db.commit()
        await db.rollback()

        user = await store.get_user(MemorySession(), "alice")
        assert user is not None
        assert user.balance == 100

    async def test_rollback_restores_market_state(self, store: InMemoryLedgerStore) -> None:
        setup = MemorySession()
        market = await store.create_market(setup, _new_market())
        await setup.commit()

        db = MemorySession()
        joined = await store.join_market(db, market.id, "bob", "sig-joiner-0001")
        assert joined is not None and joined.status == "active"
        await db.rollback()

        reread = await store.get_market(MemorySession(), market.id)
        assert reread.status == "open"
        assert reread.counterparty_id is None

    async def test_uncommitted_transition_blocks_other_sessions(
        self, store: InMemoryLedgerStore
    ) -> None:
        setup = MemorySession()
        market = await store.create_market(setup, _new_market())
        await setup.commit()

        first = MemorySession()
        await store.join_market(first, market.id, "bob", "sig-joiner-0001")
        second = MemorySession()
        pending = asyncio.create_task(store.cancel_market(second, market.id, utc_now()))
        for _ in range(5):
            await asyncio.sleep(0)
        assert not pending.done()

        await first.rollback()
        cancelled = await pending
        await second.commit()

        assert cancelled is not None
        assert cancelled.status == "cancelled"
        assert cancelled.counterparty_id is None

    async def test_commit_releases_waiting_session(self, store: InMemoryLedgerStore) -> None:
        setup = MemorySession()
        market = await store.create_market(setup, _new_market())
        await setup.commit()

        first = MemorySession()
        await store.join_market(first, market.id, "bob", "sig-joiner-0001")
        second = MemorySession()
        pending = asyncio.create_task(
            store.join_market(second, market.id, "carol", "sig-joiner-0002")
        )
        await asyncio.sleep(0)
        await first.commit()

        assert await pending is None
        await second.rollback()
        assert (await store.get_market(MemorySession(), market.id)).counterparty_id == "bob"

    async def test_uncommitted_create_blocks_join(self, store: InMemoryLedgerStore) -> None:
        creating = MemorySession()
        market = await store.create_market(creating, _new_market())
        joiner = MemorySession()
        pending = asyncio.create_task(
            store.join_market(joiner, market.id, "bob", "sig-joiner-0001")
        )
        for _ in range(5):
            await asyncio.sleep(0)
        assert not pending.done()

        await creating.rollback()

        assert await pending is None
        await joiner.rollback()


class TestUsers:
    async def test_upsert_keeps_existing_balance(self, store: InMemoryLedgerStore) -> None:
        db = MemorySession()
        await store.upsert_user(db, "alice", 100)
        again = await store.upsert_user(db, "alice", 999)
        assert again.balance == 100

    async def test_balance_never_goes_negative(self, store: InMemoryLedgerStore) -> None:
        db = MemorySession()
        await store.upsert_user(db, "alice", 100)

        assert await store.update_user_balance(db, "alice", -101) is None
        updated = await store.update_user_balance(db, "alice", -100)

        assert updated.balance == 0

    async def test_balance_update_unknown_user(self, store: InMemoryLedgerStore) -> None:
        assert await store.update_user_balance(MemorySession(), "ghost", 10) is None

    async def test_returned_copies_are_detached(self, store: InMemoryLedgerStore) -> None:
        db = MemorySession()
        user = await store.upsert_user(db, "alice", 100)
        user.balance = 0
        assert (await store.get_user(db, "alice")).balance == 100


class TestConditionalTransitions:
    async def test_second_join_fails(self, store: InMemoryLedgerStore) -> None:
        db = MemorySession()
        market = await store.create_market(db, _new_market())

        first = await store.join_market(db, market.id, "bob", "sig-joiner-0001")
        second = await store.join_market(db, market.id, "carol", "sig-joiner-0002")

        assert first is not None
        assert second is None
        assert (await store.get_market(db, market.id)).counterparty_id == "bob"

    async def test_settle_requires_active(self, store: InMemoryLedgerStore) -> None:
        db = MemorySession()
        market = await store.create_market(db, _new_market())

        assert await store.settle_market(db, market.id, "refund", utc_now()) is None

        await store.join_market(db, market.id, "bob", "sig-joiner-0001")
        settled = await store.settle_market(db, market.id, "refund", utc_now())
        assert settled.status == "settled"
        assert settled.settlement == "refund"
        assert await store.settle_market(db, market.id, "refund", utc_now()) is None

    async def test_cancel_requires_open(self, store: InMemoryLedgerStore) -> None:
        db = MemorySession()
        market = await store.create_market(db, _new_market())
        await store.join_market(db, market.id, "bob", "sig-joiner-0001")

        assert await store.cancel_market(db, market.id, utc_now()) is None

    async def test_unknown_market(self, store: InMemoryLedgerStore) -> None:
        db = MemorySession()
        assert await store.join_market(db, 42, "bob", "sig-joiner-0001") is None
        assert await store.cancel_market(db, 42, utc_now()) is None


class TestReads:
    async def test_lists_newest_first(self, store: InMemoryLedgerStore) -> None:
        db = MemorySession()
        first = await store.create_market(db, _new_market())
        second = await store.create_market(db, _new_market())

        markets = await store.get_markets(db, None)

        assert [m.id for m in markets] == [second.id, first.id]

    async def test_user_markets_include_both_sides(self, store: InMemoryLedgerStore) -> None:
        db = MemorySession()
        created = await store.create_market(db, _new_market("alice"))
        joined = await store.create_market(db, _new_market("carol"))
        await store.join_market(db, joined.id, "alice", "sig-joiner-0001")
        await store.create_market(db, _new_market("carol"))

        markets = await store.get_user_markets(db, "alice")

        assert {m.id for m in markets} == {created.id, joined.id}

    async def test_pending_refunds(self, store: InMemoryLedgerStore) -> None:
        db = MemorySession()
        await store.create_transaction(db, "alice", 1, "refund", 10, "pending")
        await store.create_transaction(db, "bob", 1, "refund", 10, "paid", "sig-payout-0001")
        await store.create_transaction(db, "bob", 1, "stake", 10, "stake")

        pending = await store.list_refund_transactions(db, True)
        every = await store.list_refund_transactions(db, False)

        assert [t.user_id for t in pending] == ["alice"]
        assert len(every) == 2

    async def test_rejects_non_positive_amount(self, store: InMemoryLedgerStore) -> None:
        with pytest.raises(InternalError):
            await store.create_transaction(MemorySession(), "alice", 1, "fee", 0, "zero")

    async def test_reset_clears_everything(self, store: InMemoryLedgerStore) -> None:
        db = MemorySession()
        await store.upsert_user(db, "alice", 1)
        await store.create_market(db, _new_market())
        store.reset()

        assert await store.get_user(db, "alice") is None
        assert await store.get_markets(db, None) == []
        market = await store.create_market(db, _new_market())
        assert market.id == 1
