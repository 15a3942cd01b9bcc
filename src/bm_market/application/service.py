"""MarketLifecycleEngine — create / join / settle / cancel.

The engine is stateless across calls: every operation takes the caller's
wallet identity explicitly, re-reads through the ledger store and writes
through its conditional primitives. Each mutating operation is one unit of
work on `db`: either everything commits (market row, balances, transaction
rows) or the whole operation is rolled back.
"""

import logging
from typing import Any

from config.settings import settings
from src.bm_admin.domain.policy import AccessPolicy, build_access_policy
from src.bm_common.datetime_utils import utc_now
from src.bm_common.enums import MarketStatus, SettlementOutcome, TransactionType
from src.bm_common.errors import (
    InsufficientBalanceError,
    InvalidFieldError,
    InvalidSettlementValueError,
    InvalidStatusFilterError,
    MarketAlreadyJoinedError,
    MarketNotActiveError,
    MarketNotFoundError,
    MarketNotOpenError,
    MissingCounterpartyError,
    NotCreatorError,
    OddsOutOfRangeError,
    PaymentProofMissingError,
    SelfJoinError,
    StakeOutOfRangeError,
    UnauthorizedSettlementError,
    UserNotFoundError,
)
from src.bm_common.lamports import (
    BPS_DENOMINATOR,
    MAX_ODDS_BPS,
    MIN_ODDS_BPS,
    counterparty_stake_for,
    odds_bps_for,
)
from src.bm_ledger.domain.models import Market, NewMarket, Transaction
from src.bm_ledger.domain.repository import LedgerStoreProtocol
from src.bm_ledger.infrastructure.backend import get_ledger_store
from src.bm_market.domain.models import (
    CancellationResult,
    MarketDraft,
    MarketRules,
    SettlementResult,
)
from src.bm_market.domain.settlement import Disbursement, compute_settlement
from src.bm_market.domain.state_machine import can_transition

logger = logging.getLogger("bm.market")


def rules_from_settings() -> MarketRules:
    return MarketRules(
        fee_bps=settings.PLATFORM_FEE_BPS,
        min_stake=settings.MIN_STAKE_LAMPORTS,
        max_stake=settings.MAX_STAKE_LAMPORTS,
        min_signature_length=settings.MIN_PAYMENT_SIGNATURE_LENGTH,
        custodial=settings.CUSTODIAL_BALANCES,
        platform_user_id=settings.PLATFORM_USER_ID,
    )


class MarketLifecycleEngine:
    def __init__(
        self,
        repo: LedgerStoreProtocol | None = None,
        policy: AccessPolicy | None = None,
        rules: MarketRules | None = None,
    ) -> None:
        self._repo: LedgerStoreProtocol = repo or get_ledger_store()
        self._policy: AccessPolicy = policy or build_access_policy(
            settings.ADMIN_POLICY, settings.ADMIN_WALLETS
        )
        self._rules = rules or rules_from_settings()

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _require_payment_proof(self, signature: str | None) -> str:
        """Length check only; the signature is never verified on-chain."""
        if signature is None:
            raise PaymentProofMissingError()
        signature = signature.strip()
        if len(signature) < self._rules.min_signature_length:
            raise PaymentProofMissingError()
        return signature

    def _check_stake(self, amount: int) -> None:
        if not (self._rules.min_stake <= amount <= self._rules.max_stake):
            raise StakeOutOfRangeError(amount, self._rules.min_stake, self._rules.max_stake)

    def _validate_draft(self, draft: MarketDraft) -> tuple[int, int]:
        """Validate a creation request. Returns (counterparty stake, odds bps).

        Odds are creator stake / counterparty stake. Either side may be
        omitted and is derived from the other; when both are given they must
        agree to within one lamport of the derived counterparty stake.
        """
        if not draft.title or not draft.title.strip():
            raise InvalidFieldError("title", "must not be empty")
        if not draft.category or not draft.category.strip():
            raise InvalidFieldError("category", "must not be empty")
        if draft.expiry_date is None:
            raise InvalidFieldError("expiry_date", "is required")
        self._check_stake(draft.stake_amount)
        counterparty_stake = draft.counterparty_stake_amount
        odds_bps = draft.odds_bps
        if counterparty_stake is None:
            if odds_bps is None:
                odds_bps = BPS_DENOMINATOR
            if not (MIN_ODDS_BPS <= odds_bps <= MAX_ODDS_BPS):
                raise OddsOutOfRangeError(odds_bps)
            counterparty_stake = counterparty_stake_for(draft.stake_amount, odds_bps)
        else:
            self._check_stake(counterparty_stake)
            implied = odds_bps_for(draft.stake_amount, counterparty_stake)
            if odds_bps is None:
                odds_bps = implied
            elif odds_bps != implied and abs(
                counterparty_stake - counterparty_stake_for(draft.stake_amount, odds_bps)
            ) > 1:
                raise InvalidFieldError(
                    "odds", "does not match stake / counterparty_stake_amount"
                )
            if not (MIN_ODDS_BPS <= odds_bps <= MAX_ODDS_BPS):
                raise OddsOutOfRangeError(odds_bps)
        self._check_stake(counterparty_stake)
        return counterparty_stake, odds_bps

    # ------------------------------------------------------------------
    # Balance helpers (custodial variant)
    # ------------------------------------------------------------------

    async def _debit(self, db: Any, user_id: str, amount: int) -> None:
        user = await self._repo.update_user_balance(db, user_id, -amount)
        if user is None:
            current = await self._repo.get_user(db, user_id)
            available = current.balance if current else 0
            raise InsufficientBalanceError(amount, available)

    async def _credit(self, db: Any, user_id: str, amount: int) -> None:
        user = await self._repo.update_user_balance(db, user_id, amount)
        if user is None:
            raise UserNotFoundError(user_id)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def create_market(
        self, db: Any, creator_id: str, draft: MarketDraft
    ) -> Market:
        counterparty_stake, odds_bps = self._validate_draft(draft)
        signature = self._require_payment_proof(draft.payment_signature)
        title = draft.title.strip()

        try:
            if self._rules.custodial:
                await self._debit(db, creator_id, draft.stake_amount)
            market = await self._repo.create_market(
                db,
                NewMarket(
                    title=title,
                    description=draft.description,
                    category=draft.category.strip(),
                    stake_amount=draft.stake_amount,
                    counterparty_stake_amount=counterparty_stake,
                    odds_bps=odds_bps,
                    creator_id=creator_id,
                    expiry_date=draft.expiry_date,  # type: ignore[arg-type]
                    payment_signature=signature,
                ),
            )
            await self._repo.create_transaction(
                db,
                creator_id,
                market.id,
                TransactionType.STAKE.value,
                market.stake_amount,
                f"Created market: {market.title}",
                signature,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "market %d created by %s stake=%d counterparty_stake=%d",
            market.id, creator_id, market.stake_amount, market.counterparty_stake_amount,
        )
        return market

    async def join_market(
        self, db: Any, joiner_id: str, market_id: int, payment_signature: str | None
    ) -> Market:
        market = await self._repo.get_market(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        if market.creator_id == joiner_id:
            raise SelfJoinError(market_id)
        signature = self._require_payment_proof(payment_signature)
        if market.counterparty_id is not None or not can_transition(
            market.status, MarketStatus.ACTIVE
        ):
            raise MarketNotOpenError(market_id)

        try:
            joined = await self._repo.join_market(db, market_id, joiner_id, signature)
            if joined is None:
                logger.info("join of market %d by %s lost the race", market_id, joiner_id)
                raise MarketNotOpenError(market_id)
            if self._rules.custodial:
                await self._debit(db, joiner_id, joined.counterparty_stake_amount)
            await self._repo.create_transaction(
                db,
                joiner_id,
                joined.id,
                TransactionType.STAKE.value,
                joined.counterparty_stake_amount,
                f"Joined market: {joined.title}",
                signature,
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("market %d joined by %s", market_id, joiner_id)
        return joined

    async def settle_market(
        self, db: Any, admin_id: str, market_id: int, settlement: str
    ) -> SettlementResult:
        try:
            outcome = SettlementOutcome(settlement)
        except ValueError:
            raise InvalidSettlementValueError(str(settlement)) from None

        admin = await self._repo.get_user(db, admin_id)
        if admin is None or not self._policy.is_admin(admin):
            raise UnauthorizedSettlementError(admin_id)

        market = await self._repo.get_market(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        if not can_transition(market.status, MarketStatus.SETTLED):
            raise MarketNotActiveError(market_id)
        if market.counterparty_id is None:
            raise MissingCounterpartyError(market_id)

        try:
            settled = await self._repo.settle_market(
                db, market_id, outcome.value, utc_now()
            )
            if settled is None:
                logger.info("settlement of market %d lost the race", market_id)
                raise MarketNotActiveError(market_id)

            summary = compute_settlement(
                settled, outcome, self._rules.fee_bps, self._rules.platform_user_id
            )
            transactions: list[Transaction] = []
            for disbursement in summary.disbursements:
                transactions.append(await self._disburse(db, settled, disbursement))
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "market %d settled %s by %s pot=%d fee=%d",
            market_id, outcome.value, admin_id, summary.total_pot, summary.platform_fee,
        )
        return SettlementResult(market=settled, summary=summary, transactions=transactions)

    async def _disburse(
        self, db: Any, market: Market, disbursement: Disbursement
    ) -> Transaction:
        if disbursement.tx_type == TransactionType.FEE:
            await self._repo.upsert_user(db, disbursement.user_id, 0)
            description = f"Platform fee for market: {market.title}"
        elif disbursement.tx_type == TransactionType.PAYOUT:
            description = f"Won market: {market.title}"
        else:
            description = f"Refund for market: {market.title}"

        tx = await self._repo.create_transaction(
            db,
            disbursement.user_id,
            market.id,
            disbursement.tx_type.value,
            disbursement.amount,
            description,
        )
        if self._rules.custodial:
            await self._credit(db, disbursement.user_id, disbursement.amount)
        return tx

    async def cancel_market(
        self, db: Any, creator_id: str, market_id: int
    ) -> CancellationResult:
        market = await self._repo.get_market(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        if market.creator_id != creator_id:
            raise NotCreatorError(market_id)
        if market.counterparty_id is not None:
            raise MarketAlreadyJoinedError(market_id)
        if not can_transition(market.status, MarketStatus.CANCELLED):
            raise MarketNotOpenError(market_id)

        try:
            cancelled = await self._repo.cancel_market(db, market_id, utc_now())
            if cancelled is None:
                current = await self._repo.get_market(db, market_id)
                if current is not None and current.counterparty_id is not None:
                    raise MarketAlreadyJoinedError(market_id)
                raise MarketNotOpenError(market_id)
            refund = await self._repo.create_transaction(
                db,
                creator_id,
                market_id,
                TransactionType.REFUND.value,
                cancelled.stake_amount,
                f"Refund for cancelled market: {cancelled.title}",
            )
            if self._rules.custodial:
                await self._credit(db, creator_id, cancelled.stake_amount)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("market %d cancelled by %s", market_id, creator_id)
        return CancellationResult(market=cancelled, refund=refund)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_market(self, db: Any, market_id: int) -> Market:
        market = await self._repo.get_market(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        return market

    async def list_markets(self, db: Any, status: str | None) -> list[Market]:
        if status is not None:
            try:
                status = MarketStatus(status).value
            except ValueError:
                raise InvalidStatusFilterError(status) from None
        return await self._repo.get_markets(db, status)
