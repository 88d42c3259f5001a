from typing import Optional

from acervo.components.base import Component


class LoadingIndicator(Component):
    """Inline spinner shown while a guard has not decided yet."""

    def render(self) -> str:
        return '<div class="loading-indicator" role="status" aria-busy="true"><span class="spinner"></span></div>'


class LoadingScreen(Component):
    def __init__(self, message: str = "Verificando permissões..."):
        self.message = message

    def render(self) -> str:
        return (
            '<div class="loading-screen" role="status" aria-busy="true">'
            '<span class="spinner"></span>'
            f'<p>{self.escape(self.message)}</p>'
            '</div>'
        )


class AccessDeniedNotice(Component):
    def __init__(self, message: str = "Você não tem permissão para acessar este conteúdo."):
        self.message = message

    def render(self) -> str:
        return f'<div class="alert alert-denied" role="alert">{self.escape(self.message)}</div>'


class AccessErrorNotice(Component):
    """Lookup failed: neither allowed nor denied. Offers a retry link."""

    def __init__(self, retry_href: Optional[str] = None):
        self.retry_href = retry_href

    def render(self) -> str:
        retry = ""
        if self.retry_href:
            retry = f' <a href="{self.escape(self.retry_href)}">Tentar novamente</a>'
        return (
            '<div class="alert alert-error" role="alert">'
            f'Não foi possível verificar seu acesso.{retry}'
            '</div>'
        )


class Toast(Component):
    """One-shot notice carried over a redirect."""

    def __init__(self, message: str, severity: str = "info"):
        self.message = message
        self.severity = severity

    def render(self) -> str:
        return (
            f'<div class="toast toast-{self.escape(self.severity)}" role="status">'
            f'{self.escape(self.message)}'
            '</div>'
        )


class PendingApprovalMessage(Component):
    def __init__(self, sign_out_action: str = "/sair"):
        self.sign_out_action = sign_out_action

    def render(self) -> str:
        return f"""<section class="card pending-approval">
    <h1>Aguardando Aprovação</h1>
    <p class="card-description">Seu cadastro está sendo analisado</p>
    <div class="alert">
        Seu cadastro foi enviado com sucesso! Um administrador irá revisar e aprovar seu acesso em breve.
    </div>
    <form method="post" action="{self.escape(self.sign_out_action)}">
        <button type="submit" class="btn btn-outline">Sair</button>
    </form>
</section>"""
