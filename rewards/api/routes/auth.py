"""
Sign in with Slack: OAuth callback and logout.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from rewards.api.deps import get_app_settings
from rewards.api.middleware import callback_url
from rewards.core.config import Settings
from rewards.core.errors import ExternalFetchError
from rewards.db.session import get_db
from rewards.services.auth.session import SESSION_COOKIE_NAME, SessionSigner
from rewards.services.auth.slack import SlackOAuthClient
from rewards.services.users.service import UserService
from rewards.utils.metrics import slack_logins_total

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


def get_slack_client(settings: Settings = Depends(get_app_settings)) -> SlackOAuthClient:
    return SlackOAuthClient(settings)


@router.get("/api/slack-callback")
async def slack_callback(
    request: Request,
    code: str | None = None,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    slack: SlackOAuthClient = Depends(get_slack_client),
):
    if not code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing code")
    try:
        identity = await slack.exchange_code(code, callback_url(request))
    except ExternalFetchError as e:
        slack_logins_total.labels(status="failed").inc()
        logger.warning("slack_login_failed", extra={"error": str(e)})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Slack sign-in failed")

    UserService(db, settings.payout_avatar_url_template).get_or_create_user(identity.slack_id, identity.avatar_url)
    slack_logins_total.labels(status="ok").inc()

    signer = SessionSigner(settings.sessions_secret, settings.session_max_age)
    response = RedirectResponse("/", status_code=302)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        signer.dumps(identity.slack_id),
        max_age=settings.session_max_age,
        path="/",
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return response


@router.get("/logout")
def logout():
    response = RedirectResponse("/", status_code=302)
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    return response
