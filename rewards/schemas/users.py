from pydantic import BaseModel


class UserWithTokens(BaseModel):
    slack_id: str
    avatar_url: str
    is_admin: bool = False
    tokens: int = 0  # available balance, floored at 0
