from typing import Optional

from acervo.components.base import Component
from acervo.components.notices import Toast


class Layout(Component):
    """Complete HTML document around pre-rendered page content."""

    def __init__(
        self,
        title: str,
        content: str,
        email: Optional[str] = None,
        notice: Optional[Toast] = None,
        sign_out_action: str = "/sair",
    ):
        self.title = title
        self.content = content
        self.email = email
        self.notice = notice
        self.sign_out_action = sign_out_action

    def render(self) -> str:
        header = ""
        if self.email:
            header = f"""<header class="app-header">
    <a href="/" class="brand">Acervo</a>
    <span class="user-email">{self.escape(self.email)}</span>
    <form method="post" action="{self.escape(self.sign_out_action)}">
        <button type="submit" class="btn btn-link">Sair</button>
    </form>
</header>"""
        notice_html = self.notice.render() if self.notice else ""
        return f"""<!DOCTYPE html>
<html lang="pt-BR">
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <title>{self.escape(self.title)} · Acervo</title>
</head>
<body>
{header}
{notice_html}
<main id="main-content">
{self.content}
</main>
</body>
</html>"""
