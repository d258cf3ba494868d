"""
Credit Service.

Credits live on the caller's ``user_profiles`` row:

    credits_remaining        spendable balance
    credits_used_this_month  running total for the billing period
    subscription_tier        plan id, also selects the rate-limit tier

Every deduction appends a ``credit_transactions`` row with the balance
before and after, so ``/api/credits?history=true`` can page through them.

The balance check happens before synthesis; the deduction happens after
the audio is stored. A failed deduction is logged and does not fail the
request, since the caller already has their audio.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from decible.backend.client import BackendClient, BackendError
from decible.core.config import AppConfig
from decible.core.logging import error, get_logger, info, warn
from decible.core.metrics import metrics
from decible.services.errors import InsufficientCreditsError, NotFoundError, PersistenceError
from decible.services.models import UserIdentity
from decible.services.validators import validate_history_limit, validate_offset

_LOG = get_logger("decible.credits")

DEFAULT_TIER = "free"
TRANSACTION_TYPE = "generation"


def _as_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    return 0


@dataclass(frozen=True)
class CreditProfile:
    credits_remaining: int
    subscription_tier: str
    credits_used_this_month: int = 0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CreditProfile":
        return cls(
            credits_remaining=_as_int(row.get("credits_remaining")),
            subscription_tier=row.get("subscription_tier") or DEFAULT_TIER,
            credits_used_this_month=_as_int(row.get("credits_used_this_month")),
        )


@dataclass(frozen=True)
class CreditBalance:
    credits: int
    tier: str
    transactions: Optional[List[Dict[str, Any]]] = None
    total: int = 0
    limit: Optional[int] = None
    offset: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"credits": self.credits, "tier": self.tier}
        if self.limit is None:
            return body
        body["transactions"] = self.transactions
        body["pagination"] = {
            "total": self.total,
            "limit": self.limit,
            "offset": self.offset,
            "hasMore": self.offset + self.limit < self.total,
        }
        return body


class CreditService:
    def __init__(self, backend: BackendClient, config: Optional[AppConfig] = None):
        self._backend = backend
        self._config = config or AppConfig()

    def get_profile(self, user: UserIdentity) -> CreditProfile:
        """
        Load the caller's credit profile.

        Raises:
            NotFoundError: The user has no profile row.
            PersistenceError: Backend read failed.
        """
        try:
            rows = self._backend.select(
                self._config.backend.profiles_table,
                filters={"id": user.id},
                columns="credits_remaining,subscription_tier,credits_used_this_month",
                limit=1,
            )
        except BackendError as exc:
            metrics.record_upstream_failure("database")
            error(_LOG, "profile_fetch_failed", status=exc.status, body=exc.body)
            raise PersistenceError("Failed to fetch credit balance", details={"status": exc.status}) from exc

        if not rows:
            warn(_LOG, "profile_missing", user=user.id)
            raise NotFoundError("User profile not found")
        return CreditProfile.from_row(rows[0])

    def ensure_balance(self, profile: CreditProfile, needed: int) -> None:
        """Raise InsufficientCreditsError when ``profile`` cannot cover ``needed``."""
        if profile.credits_remaining < needed:
            info(_LOG, "insufficient_credits", needed=needed, remaining=profile.credits_remaining)
            raise InsufficientCreditsError(needed, profile.credits_remaining)

    def deduct(
        self,
        user: UserIdentity,
        amount: int,
        description: str,
        reference_id: Optional[str] = None,
    ) -> Optional[int]:
        """
        Take ``amount`` credits and log the transaction.

        The profile is re-read so the update starts from the current
        balance. Returns the new balance, or None when the profile could not
        be read, the balance no longer covers ``amount``, or the update
        failed. A failed transaction insert is logged only.
        """
        table = self._config.backend.profiles_table
        try:
            rows = self._backend.select(
                table,
                filters={"id": user.id},
                columns="credits_remaining,credits_used_this_month",
                limit=1,
            )
        except BackendError as exc:
            metrics.record_upstream_failure("database")
            error(_LOG, "deduct_fetch_failed", status=exc.status, body=exc.body)
            return None
        if not rows:
            error(_LOG, "deduct_profile_missing", user=user.id)
            return None

        before = _as_int(rows[0].get("credits_remaining"))
        after = before - amount
        if after < 0:
            warn(_LOG, "deduct_refused", needed=amount, remaining=before)
            return None

        used = _as_int(rows[0].get("credits_used_this_month")) + amount
        try:
            self._backend.update(
                table,
                filters={"id": user.id},
                values={"credits_remaining": after, "credits_used_this_month": used},
            )
        except BackendError as exc:
            metrics.record_upstream_failure("database")
            error(_LOG, "deduct_update_failed", status=exc.status, body=exc.body)
            return None

        try:
            self._backend.insert(self._config.backend.transactions_table, {
                "user_id": user.id,
                "amount": -amount,
                "balance_before": before,
                "balance_after": after,
                "type": TRANSACTION_TYPE,
                "description": description,
                "reference_id": reference_id,
                "reference_type": TRANSACTION_TYPE,
            })
        except BackendError as exc:
            metrics.record_upstream_failure("database")
            error(_LOG, "transaction_insert_failed", status=exc.status, body=exc.body)

        info(_LOG, "credits_deducted", amount=amount, balance=after)
        return after

    def balance(
        self,
        user: UserIdentity,
        include_history: bool = False,
        limit: Any = None,
        offset: Any = None,
    ) -> CreditBalance:
        """
        Current balance and tier, optionally with one page of transactions.

        ``limit`` defaults to credits.default_limit and is capped at
        credits.max_limit; ``offset`` defaults to 0. A failed transaction
        read leaves ``transactions`` as None with a total of 0.

        Raises:
            NotFoundError: The user has no profile row.
            PersistenceError: Profile read failed.
        """
        profile = self.get_profile(user)
        if not include_history:
            return CreditBalance(credits=profile.credits_remaining, tier=profile.subscription_tier)

        credits_cfg = self._config.credits
        n = validate_history_limit(limit, credits_cfg.default_limit, credits_cfg.max_limit)
        start = validate_offset(offset)

        transactions: Optional[List[Dict[str, Any]]] = None
        total = 0
        try:
            transactions, total = self._backend.select_page(
                self._config.backend.transactions_table,
                filters={"user_id": user.id},
                order="created_at",
                descending=True,
                limit=n,
                offset=start,
            )
        except BackendError as exc:
            metrics.record_upstream_failure("database")
            error(_LOG, "transactions_fetch_failed", status=exc.status, body=exc.body)

        info(_LOG, "balance", credits=profile.credits_remaining, tier=profile.subscription_tier,
             transactions=len(transactions or []))
        return CreditBalance(
            credits=profile.credits_remaining,
            tier=profile.subscription_tier,
            transactions=transactions,
            total=total,
            limit=n,
            offset=start,
        )
