"""Protected-route decisions driven by the session controller."""
from dataclasses import dataclass

from faceunlock.services.auth_service import SessionAuthController

LOGIN_ROUTE = "Login"


@dataclass(frozen=True)
class Route:
    """The navigation target as seen by the guard."""

    path: str
    name: str = ""
    requires_auth: bool = False
    public: bool = False


@dataclass(frozen=True)
class RouteDecision:
    """
    Outcome of a navigation attempt.

    When not allowed, the view layer sends the user to ``redirect_to`` and
    returns to ``redirect`` after logging in. ``expired`` tells the login view
    to explain why.
    """

    allowed: bool
    redirect_to: str | None = None
    redirect: str | None = None
    expired: bool = False


ALLOW = RouteDecision(allowed=True)


def authorize_navigation(auth: SessionAuthController, route: Route) -> RouteDecision:
    """
    Decide whether ``route`` may be entered.

    Expiry is checked here, lazily: an expired session is cleared before the
    redirect, so the user lands back in the unauthenticated state.
    """
    if route.public or not route.requires_auth:
        return ALLOW

    if not auth.login_enabled and not auth.password_hash:
        return ALLOW

    if auth.is_logged_in:
        if auth.is_expired():
            auth.clear_login_state()
            return RouteDecision(
                allowed=False, redirect_to=LOGIN_ROUTE, redirect=route.path, expired=True,
            )
        return ALLOW

    return RouteDecision(allowed=False, redirect_to=LOGIN_ROUTE, redirect=route.path)
