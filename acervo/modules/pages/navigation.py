"""
HTTP implementations of the Navigator and Notifier ports.

A server-rendered request cannot navigate on its own: RedirectNavigator
records the target, the page dependency turns it into a PageRedirect, and the
application answers with a 303. Notices travel in a one-shot cookie that the
next rendered page reads and clears.
"""

from typing import List, Optional, Tuple
from urllib.parse import quote, unquote

from fastapi import Request
from starlette.responses import RedirectResponse, Response

from acervo.components import Toast
from acervo.config import settings
from acervo.modules.access.ports import Severity


class PageRedirect(Exception):
    def __init__(self, location: str, notice: Optional[Tuple[str, Severity]] = None):
        self.location = location
        self.notice = notice
        super().__init__(location)


class RedirectNavigator:
    def __init__(self):
        self.location: Optional[str] = None

    def navigate_to(self, path: str) -> None:
        self.location = path


class FlashNotifier:
    """Collects notices for the redirect response."""

    def __init__(self):
        self.notices: List[Tuple[str, Severity]] = []

    def notify_user(self, message: str, severity: Severity = Severity.INFO) -> None:
        self.notices.append((message, severity))

    @property
    def last(self) -> Optional[Tuple[str, Severity]]:
        return self.notices[-1] if self.notices else None


def set_notice(response: Response, message: str, severity: Severity = Severity.INFO) -> None:
    value = quote(f"{Severity(severity).value}:{message}")
    response.set_cookie(
        settings.notice_cookie_name,
        value,
        max_age=60,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


def read_notice(request: Request) -> Optional[Toast]:
    raw = request.cookies.get(settings.notice_cookie_name)
    if not raw:
        return None
    severity, _, message = unquote(raw).partition(":")
    if not message:
        return None
    try:
        severity = Severity(severity)
    except ValueError:
        severity = Severity.INFO
    return Toast(message, severity.value)


def clear_notice(request: Request, response: Response) -> None:
    if settings.notice_cookie_name in request.cookies:
        response.delete_cookie(settings.notice_cookie_name)


def redirect_response(location: str, notice: Optional[Tuple[str, Severity]] = None) -> Response:
    response = RedirectResponse(location, status_code=303)
    if notice is not None:
        set_notice(response, *notice)
    return response
