"""Tests for UserService balances and lazy user creation."""
from rewards.models.payout import Payout
from rewards.models.shop_item import ShopItem
from rewards.models.shop_order import ShopOrder
from rewards.models.user import User
from rewards.services.users.service import UserService, default_avatar_url


def _seed(db):
    db.add_all([User(slack_id="U1", avatar_url="a1"), User(slack_id="U2", avatar_url="a2", is_admin=True)])
    db.add(ShopItem(id="item1", name="Stickers", description="", image_url="", price=3))
    db.add_all([Payout(user_id="U1", tokens=5, memo="m"), Payout(user_id="U1", tokens=2, memo="m")])
    db.add_all(
        [
            ShopOrder(shop_item_id="item1", price_at_order=3, status="pending", user_id="U1"),
            ShopOrder(shop_item_id="item1", price_at_order=3, status="fulfilled", user_id="U1"),
            ShopOrder(shop_item_id="item1", price_at_order=3, status="rejected", user_id="U1"),
            ShopOrder(shop_item_id="item1", price_at_order=3, status="pending", user_id="U2"),
        ]
    )
    db.commit()


class TestBalances:
    def test_rejected_orders_do_not_count(self, db):
        _seed(db)
        svc = UserService(db)
        assert svc.raw_balance("U1") == 1
        assert svc.available_tokens("U1") == 1

    def test_negative_balance_floored_for_display(self, db):
        _seed(db)
        svc = UserService(db)
        assert svc.raw_balance("U2") == -3
        assert svc.get_with_tokens("U2").tokens == 0

    def test_list_with_tokens(self, db):
        _seed(db)
        users = UserService(db).list_with_tokens()
        assert [(u.slack_id, u.tokens, u.is_admin) for u in users] == [("U1", 1, False), ("U2", 0, True)]

    def test_unknown_user(self, db):
        assert UserService(db).get_with_tokens("nobody") is None


class TestUserCreation:
    def test_get_or_create_new_user_gets_default_avatar(self, db):
        user = UserService(db).get_or_create_user("U7")
        assert user.avatar_url == default_avatar_url("U7")
        assert user.avatar_url == "https://cachet.dunkirk.sh/users/U7/r"

    def test_get_or_create_refreshes_avatar(self, db):
        svc = UserService(db)
        svc.get_or_create_user("U7", "https://old")
        user = svc.get_or_create_user("U7", "https://new")
        assert user.avatar_url == "https://new"
        assert db.query(User).count() == 1

    def test_ensure_users_only_creates_missing(self, db):
        db.add(User(slack_id="U1", avatar_url="a"))
        db.commit()
        created = UserService(db).ensure_users(["U3", "U1", "U3", "U2"])
        assert created == ["U2", "U3"]
