"""
Slack session middleware.

Reads the signed `session` cookie, loads the user with their balance into
request.state.user and enforces sign-in: pages redirect to Slack, API calls get
a 401. Non-admins are sent back to the shop from /admin pages.
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from rewards.services.auth.session import SESSION_COOKIE_NAME, SessionSigner
from rewards.services.auth.slack import SlackOAuthClient
from rewards.services.users.service import UserService

logger = logging.getLogger(__name__)

PUBLIC_PATHS = ("/api/slack-callback", "/health", "/ready", "/metrics", "/api/import-shop")
CALLBACK_PATH = "/api/slack-callback"


def callback_url(request: Request) -> str:
    return str(request.base_url).rstrip("/") + CALLBACK_PATH


class SlackSessionMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        request.state.user = None
        if path in PUBLIC_PATHS:
            return await call_next(request)

        settings = request.app.state.settings
        clear_cookie = False
        token = request.cookies.get(SESSION_COOKIE_NAME)
        if token:
            signer = SessionSigner(settings.sessions_secret, settings.session_max_age)
            slack_id = signer.loads(token)
            if slack_id:
                db = request.app.state.session_factory()
                try:
                    request.state.user = UserService(db, settings.payout_avatar_url_template).get_with_tokens(slack_id)
                finally:
                    db.close()
                if request.state.user is None:
                    logger.warning("session_user_missing", extra={"slack_id": slack_id})
            if request.state.user is None:
                clear_cookie = True

        user = request.state.user
        if user is None:
            if path.startswith("/api/"):
                response = JSONResponse({"detail": "Authentication required"}, status_code=401)
            else:
                authorize = SlackOAuthClient(settings).authorize_url(callback_url(request))
                response = RedirectResponse(authorize, status_code=302)
        elif not user.is_admin and path.startswith("/admin"):
            response = RedirectResponse("/", status_code=302)
        else:
            response = await call_next(request)

        if clear_cookie:
            response.delete_cookie(SESSION_COOKIE_NAME, path="/")
        return response
