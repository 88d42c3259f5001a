from typing import Optional

from acervo.components.base import Component


class LoginForm(Component):
    def __init__(self, action: str = "/entrar", email: str = "", error: Optional[str] = None):
        self.action = action
        self.email = email
        self.error = error

    def render(self) -> str:
        error = ""
        if self.error:
            error = f'<div class="alert alert-error" role="alert">{self.escape(self.error)}</div>'
        return f"""<section class="card login">
    <h1>Entrar</h1>
    {error}
    <form method="post" action="{self.escape(self.action)}">
        <label for="email">E-mail</label>
        <input id="email" name="email" type="email" required value="{self.escape(self.email)}">
        <label for="password">Senha</label>
        <input id="password" name="password" type="password" required>
        <button type="submit" class="btn btn-primary">Entrar</button>
    </form>
</section>"""


class QuickAddButton(Component):
    """Add-item shortcuts, one per collection."""

    COLLECTIONS = (
        ("livros", "Livro"),
        ("discos", "Disco"),
        ("bebidas", "Bebida"),
        ("jogos", "Jogo"),
    )

    def render(self) -> str:
        buttons = "".join(
            f'<button type="button" class="btn btn-outline" data-collection="{key}">{self.escape(label)}</button>'
            for key, label in self.COLLECTIONS
        )
        return f'<div class="quick-add" role="group" aria-label="Adicionar item">{buttons}</div>'


class CollectionSummary(Component):
    def render(self) -> str:
        items = "".join(
            f'<li data-collection="{key}">{self.escape(label)}s</li>' for key, label in QuickAddButton.COLLECTIONS
        )
        return f"""<section class="card">
    <h2>Seu acervo</h2>
    <ul class="collections">{items}</ul>
</section>"""
