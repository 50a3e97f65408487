from urllib.parse import quote
import logging

from fastapi import Request
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse

from app.modules.auth.services.auth import AccessDecision, check_admin_access

logger = logging.getLogger("app")


def is_protected(path: str, prefixes) -> bool:
    return any(path == prefix or path.startswith(f"{prefix}/") for prefix in prefixes)


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """
    Redirects requests for the admin area to the login page unless the
    admin-auth-token cookie holds a registered, valid session token.
    """

    async def dispatch(self, request: Request, call_next):
        settings = request.app.state.settings
        path = request.url.path
        if not is_protected(path, settings.PROTECTED_PATH_PREFIXES):
            return await call_next(request)

        token = request.cookies.get(settings.AUTH_COOKIE_NAME)
        decision = await run_in_threadpool(self._decide, request, token)
        if decision == AccessDecision.ALLOW:
            return await call_next(request)

        logger.info(f"Route guard redirecting {path} to login ({decision.value})")
        response = RedirectResponse(
            url=f"{settings.LOGIN_PATH}?redirect={quote(path, safe='')}",
            status_code=307,
        )
        if decision == AccessDecision.LOGIN_CLEAR_COOKIE:
            response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
        return response

    @staticmethod
    def _decide(request: Request, token) -> AccessDecision:
        state = request.app.state
        if not token or not state.settings.GUARD_VALIDATE_SESSION:
            return check_admin_access(token, state.token_registry, state.settings)

        db = state.database.session()
        try:
            return check_admin_access(token, state.token_registry, state.settings, db=db)
        finally:
            db.close()
