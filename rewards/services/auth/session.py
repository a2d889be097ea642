"""
Session cookie: the Slack user id, signed with itsdangerous.
The cookie carries no other state; balances and the admin flag are read from
the database on every request.
"""
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

SESSION_COOKIE_NAME = "session"


class SessionSigner:
    def __init__(self, secret: str, max_age: int) -> None:
        self.serializer = URLSafeTimedSerializer(secret, salt="slack-session")
        self.max_age = max_age

    def dumps(self, slack_id: str) -> str:
        return self.serializer.dumps(slack_id)

    def loads(self, token: str) -> str | None:
        """Return the Slack id, or None for a tampered, expired or empty cookie."""
        try:
            slack_id = self.serializer.loads(token, max_age=self.max_age)
        except (BadSignature, SignatureExpired):
            return None
        return slack_id if isinstance(slack_id, str) and slack_id else None
