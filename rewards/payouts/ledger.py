"""
Payout ledger replace.

Every run deletes the payouts it owns and inserts the freshly computed ones.
A payout is protected (left alone) when its memo contains one of the protected
markers, case-insensitively, or when it has no memo at all.
"""
import logging
from dataclasses import dataclass

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from rewards.models.payout import Payout
from rewards.services.users.service import DEFAULT_AVATAR_URL_TEMPLATE, UserService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayoutRow:
    user_id: str
    tokens: int
    memo: str


@dataclass
class PriorPayouts:
    total: int = 0
    protected: int = 0


def is_protected(memo: str | None, markers: tuple[str, ...]) -> bool:
    if memo is None:
        return True
    lowered = memo.lower()
    return any(marker.lower() in lowered for marker in markers)


class LedgerWriter:
    """Works inside the caller's transaction: flushes, never commits."""

    def __init__(
        self,
        db: Session,
        protected_markers: tuple[str, ...],
        avatar_url_template: str = DEFAULT_AVATAR_URL_TEMPLATE,
    ):
        self.db = db
        self.protected_markers = tuple(protected_markers)
        self.users = UserService(db, avatar_url_template)

    def _replaceable(self):
        if not self.protected_markers:
            return Payout.memo.isnot(None)
        # Same test as is_protected(): literal, case-insensitive substring
        memo = func.lower(Payout.memo)
        protected = or_(*[memo.contains(marker.lower(), autoescape=True) for marker in self.protected_markers])
        return and_(Payout.memo.isnot(None), ~protected)

    def prior_totals(self) -> dict[str, PriorPayouts]:
        """Per user: every payout on the ledger and the part of it a replace keeps."""
        totals: dict[str, PriorPayouts] = {}
        for user_id, tokens, memo in self.db.execute(select(Payout.user_id, Payout.tokens, Payout.memo)):
            prior = totals.setdefault(user_id, PriorPayouts())
            prior.total += tokens
            if is_protected(memo, self.protected_markers):
                prior.protected += tokens
        return totals

    def replace(self, rows: list[PayoutRow]) -> tuple[int, int]:
        """
        Create missing users, delete unprotected payouts, insert `rows`.
        Returns (deleted, inserted).
        """
        rows = [r for r in rows if r.tokens > 0]
        created = self.users.ensure_users([r.user_id for r in rows])
        deleted = (
            self.db.query(Payout)
            .filter(self._replaceable())
            .delete(synchronize_session=False)
        )
        self.db.add_all([Payout(user_id=r.user_id, tokens=r.tokens, memo=r.memo) for r in rows])
        self.db.flush()
        logger.info(
            "payout_ledger_replaced",
            extra={"deleted": deleted, "inserted": len(rows), "count": len(created)},
        )
        return deleted, len(rows)
