"""
Balance reconciliation.

old available = prior payouts - spend
new available = payouts after this run - spend

Spend is taken as-is: orders are never touched by the payout job. A user whose
available balance goes down (and had something to lose) gets a warning so an
operator can look at them; the ledger is written regardless.
"""
from dataclasses import dataclass
from typing import Iterable

from pydantic import BaseModel


@dataclass
class UserBalance:
    slack_id: str
    email: str = "N/A"
    old_tokens: int = 0
    new_tokens: int = 0
    spent: int = 0

    @property
    def old_available(self) -> int:
        return self.old_tokens - self.spent

    @property
    def new_available(self) -> int:
        return self.new_tokens - self.spent


class BalanceWarning(BaseModel):
    slack_id: str
    email: str
    old_balance: int
    new_balance: int
    difference: int


def check_reduction(balance: UserBalance) -> BalanceWarning | None:
    old = balance.old_available
    new = balance.new_available
    if new < old and old > 0:
        shown = max(0, new)
        return BalanceWarning(
            slack_id=balance.slack_id,
            email=balance.email,
            old_balance=old,
            new_balance=shown,
            difference=old - shown,
        )
    return None


def find_balance_reductions(balances: Iterable[UserBalance]) -> list[BalanceWarning]:
    warnings = []
    for balance in sorted(balances, key=lambda b: b.slack_id):
        warning = check_reduction(balance)
        if warning:
            warnings.append(warning)
    return warnings
