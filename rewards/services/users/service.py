import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from rewards.models.payout import Payout
from rewards.models.shop_order import SPENDING_STATUSES, ShopOrder
from rewards.models.user import User
from rewards.schemas.users import UserWithTokens

logger = logging.getLogger(__name__)

DEFAULT_AVATAR_URL_TEMPLATE = "https://cachet.dunkirk.sh/users/{slack_id}/r"


def default_avatar_url(slack_id: str, template: str = DEFAULT_AVATAR_URL_TEMPLATE) -> str:
    return template.format(slack_id=slack_id)


class UserService:
    def __init__(self, db: Session, avatar_url_template: str = DEFAULT_AVATAR_URL_TEMPLATE):
        self.db = db
        self.avatar_url_template = avatar_url_template

    def get_by_slack_id(self, slack_id: str) -> User | None:
        return self.db.query(User).filter(User.slack_id == slack_id).one_or_none()

    def get_or_create_user(self, slack_id: str, avatar_url: str | None = None) -> User:
        """Login path: create the user on first sign-in, refresh the avatar otherwise."""
        user = self.get_by_slack_id(slack_id)
        if user:
            if avatar_url and user.avatar_url != avatar_url:
                user.avatar_url = avatar_url
                self.db.add(user)
                self.db.commit()
            return user
        user = User(
            slack_id=slack_id,
            avatar_url=avatar_url or default_avatar_url(slack_id, self.avatar_url_template),
            is_admin=False,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info("user_created", extra={"slack_id": slack_id})
        return user

    def ensure_users(self, slack_ids: list[str]) -> list[str]:
        """
        Insert missing users with the default avatar. Flushes only, so callers
        running inside a transaction keep control of the commit.
        Returns the ids that were created.
        """
        wanted = sorted(set(slack_ids))
        if not wanted:
            return []
        existing = {
            row[0]
            for row in self.db.execute(select(User.slack_id).where(User.slack_id.in_(wanted)))
        }
        created = []
        for slack_id in wanted:
            if slack_id in existing:
                continue
            self.db.add(
                User(
                    slack_id=slack_id,
                    avatar_url=default_avatar_url(slack_id, self.avatar_url_template),
                    is_admin=False,
                )
            )
            created.append(slack_id)
        if created:
            self.db.flush()
            logger.info("users_created", extra={"count": len(created)})
        return created

    # ------------------------------------------------------------------
    # Balances
    # ------------------------------------------------------------------

    def payout_totals(self, slack_ids: list[str] | None = None) -> dict[str, int]:
        stmt = select(Payout.user_id, func.coalesce(func.sum(Payout.tokens), 0)).group_by(Payout.user_id)
        if slack_ids is not None:
            stmt = stmt.where(Payout.user_id.in_(slack_ids))
        return {user_id: int(total) for user_id, total in self.db.execute(stmt)}

    def spent_totals(self, slack_ids: list[str] | None = None) -> dict[str, int]:
        stmt = (
            select(ShopOrder.user_id, func.coalesce(func.sum(ShopOrder.price_at_order), 0))
            .where(ShopOrder.status.in_(SPENDING_STATUSES))
            .group_by(ShopOrder.user_id)
        )
        if slack_ids is not None:
            stmt = stmt.where(ShopOrder.user_id.in_(slack_ids))
        return {user_id: int(total) for user_id, total in self.db.execute(stmt)}

    def raw_balance(self, slack_id: str) -> int:
        """Signed balance: payouts minus pending/fulfilled spend."""
        earned = self.payout_totals([slack_id]).get(slack_id, 0)
        spent = self.spent_totals([slack_id]).get(slack_id, 0)
        return earned - spent

    def available_tokens(self, slack_id: str) -> int:
        return max(self.raw_balance(slack_id), 0)

    def get_with_tokens(self, slack_id: str) -> UserWithTokens | None:
        user = self.get_by_slack_id(slack_id)
        if not user:
            return None
        return self._with_tokens(user, self.available_tokens(slack_id))

    def list_with_tokens(self) -> list[UserWithTokens]:
        users = self.db.query(User).order_by(User.slack_id).all()
        earned = self.payout_totals()
        spent = self.spent_totals()
        return [
            self._with_tokens(u, max(earned.get(u.slack_id, 0) - spent.get(u.slack_id, 0), 0))
            for u in users
        ]

    @staticmethod
    def _with_tokens(user: User, tokens: int) -> UserWithTokens:
        return UserWithTokens(
            slack_id=user.slack_id,
            avatar_url=user.avatar_url,
            is_admin=bool(user.is_admin),
            tokens=tokens,
        )
