from typing import Iterable, Optional

from fastapi import Request
from fastapi.responses import HTMLResponse

from acervo.components import Layout, Renderable
from acervo.modules.access.guards import ComponentGuard, GuardDecision, RouteGuard
from acervo.modules.access.session import AccessSession
from acervo.modules.pages.navigation import clear_notice, read_notice


def page_response(
    request: Request,
    title: str,
    body: str,
    email: Optional[str] = None,
    status_code: int = 200,
) -> HTMLResponse:
    """Full HTML page; shows and clears a pending one-shot notice."""
    html = Layout(title, body, email=email, notice=read_notice(request)).render()
    response = HTMLResponse(html, status_code=status_code)
    clear_notice(request, response)
    return response


class GuardedPage:
    """A page request that passed its Route Guard (or is showing its error state)."""

    def __init__(self, request: Request, session: AccessSession, guard: RouteGuard):
        self.request = request
        self.session = session
        self.guard = guard

    @property
    def snapshot(self):
        return self.session.snapshot

    @property
    def email(self) -> Optional[str]:
        identity = self.session.identity_provider.get_current_identity()
        return identity.email if identity else None

    def section(self, children: Renderable, requires: Iterable = (), fallback: Renderable = None) -> str:
        """Inline part of the page behind a Component Guard."""
        guard = ComponentGuard(requires, fallback=fallback, retry_href=self.request.url.path)
        return guard.render(self.snapshot, children)

    def response(self, title: str, view: Renderable) -> HTMLResponse:
        body = self.guard.render(self.snapshot, view)
        status_code = 503 if self.guard.decision is GuardDecision.ERROR else 200
        return page_response(self.request, title, body, email=self.email, status_code=status_code)
