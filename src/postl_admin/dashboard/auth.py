"""Dashboard cookie-based session authentication."""

import hmac

from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from starlette.requests import Request
from starlette.responses import RedirectResponse

COOKIE_NAME = "postl_dash_session"
MAX_AGE = 8 * 3600  # 8 hours
SUPER_ADMIN = "super_admin"


def _get_serializer() -> URLSafeTimedSerializer:
    from postl_admin.common.config import get_settings
    return URLSafeTimedSerializer(get_settings().secret_key, salt="dashboard-session")


def check_dashboard_key(candidate: str) -> bool:
    """Constant-time comparison against the configured dashboard key."""
    from postl_admin.common.config import get_settings
    return hmac.compare_digest(candidate.encode(), get_settings().dashboard_key.encode())


def create_session_cookie(role: str = SUPER_ADMIN) -> str:
    """Sign a session payload and return the cookie value."""
    s = _get_serializer()
    return s.dumps({"role": role})


def verify_session_cookie(cookie: str) -> dict | None:
    """Verify and decode a session cookie. Returns payload or None."""
    s = _get_serializer()
    try:
        return s.loads(cookie, max_age=MAX_AGE)
    except (BadSignature, SignatureExpired):
        return None


def get_session(request: Request) -> dict | None:
    """Extract and verify the session from a request."""
    cookie = request.cookies.get(COOKIE_NAME)
    if not cookie:
        return None
    session = verify_session_cookie(cookie)
    if session is None or session.get("role") != SUPER_ADMIN:
        return None
    return session


def login_redirect() -> RedirectResponse:
    """Create a redirect to the login page."""
    return RedirectResponse("/dashboard/login", status_code=302)
