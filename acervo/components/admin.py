from typing import List, Optional

from acervo.components.base import Component

ROLE_LABELS = {
    "admin": "Administrador",
    "user": "Usuário",
    "read_only": "Somente Leitura",
}


def role_label(role: Optional[str]) -> str:
    if role is None:
        return "Sem papel"
    return ROLE_LABELS.get(role, role)


class PendingUsersCard(Component):
    """Users awaiting approval, each with an approve button."""

    def __init__(self, users: List, action_prefix: str = "/admin/usuarios"):
        self.users = users
        self.action_prefix = action_prefix

    def render(self) -> str:
        if not self.users:
            body = '<div class="alert">Não há solicitações pendentes no momento.</div>'
        else:
            items = []
            for user in self.users:
                items.append(f"""<li class="pending-user">
    <strong>{self.escape(user.full_name or "Sem nome")}</strong>
    <span>{self.escape(user.email)}</span>
    <form method="post" action="{self.escape(self.action_prefix)}/{self.escape(user.id)}/aprovar">
        <button type="submit" class="btn btn-primary">Aprovar</button>
    </form>
</li>""")
            body = f'<ul class="pending-users">{"".join(items)}</ul>'
        return f"""<section class="card">
    <h2>Solicitações Pendentes</h2>
    <p class="card-description">Usuários aguardando aprovação para acessar o sistema</p>
    {body}
</section>"""


class UserTable(Component):
    """All users with an edit form for name and role."""

    def __init__(self, users: List, action_prefix: str = "/admin/usuarios"):
        self.users = users
        self.action_prefix = action_prefix

    def _role_select(self, current: Optional[str]) -> str:
        options = ['<option value="">Sem papel</option>'] if current is None else []
        for value, label in ROLE_LABELS.items():
            selected = " selected" if value == current else ""
            options.append(f'<option value="{value}"{selected}>{self.escape(label)}</option>')
        return f'<select name="role">{"".join(options)}</select>'

    def render(self) -> str:
        rows = []
        for user in self.users:
            status = "Aprovado" if user.approved else "Pendente"
            rows.append(f"""<tr>
    <td>{self.escape(user.email)}</td>
    <td>{self.escape(role_label(user.role))}</td>
    <td>{status}</td>
    <td>
        <form method="post" action="{self.escape(self.action_prefix)}/{self.escape(user.id)}/perfil">
            <input name="full_name" value="{self.escape(user.full_name or "")}" aria-label="Nome completo">
            {self._role_select(user.role)}
            <button type="submit" class="btn btn-outline">Salvar</button>
        </form>
    </td>
</tr>""")
        return f"""<section class="card">
    <h2>Usuários</h2>
    <table class="users">
        <thead><tr><th>E-mail</th><th>Papel</th><th>Status</th><th></th></tr></thead>
        <tbody>{"".join(rows)}</tbody>
    </table>
</section>"""


CAPABILITY_LABELS = {
    "canRead": "Ver o acervo",
    "canWrite": "Criar e editar itens",
    "canDelete": "Excluir itens",
    "canManageUsers": "Gerenciar usuários",
    "canAccessAdminPanel": "Acessar o painel administrativo",
}


class RoleGroupsCard(Component):
    """Users grouped by role, each group with the capabilities its role grants.

    `matrix` is the serialized permission table (get_permission_matrix()).
    Users without a role are listed last, with no permissions.
    """

    def __init__(self, matrix: dict, users: List):
        self.matrix = matrix
        self.users = users

    def _group(self, role: Optional[str], permissions: List[str]) -> str:
        members = [u for u in self.users if u.role == role]
        count = f'{len(members)} {"usuário" if len(members) == 1 else "usuários"}'
        granted = "".join(f"<li>{self.escape(p)}</li>" for p in permissions) or "<li>Nenhuma permissão</li>"
        if members:
            people = "".join(
                f'<li>{self.escape(u.full_name or "Sem nome")} <span>{self.escape(u.email)}</span></li>'
                for u in members
            )
        else:
            people = "<li>Nenhum usuário neste grupo</li>"
        return f"""<div class="role-group" data-role="{self.escape(role or "")}">
    <h3>{self.escape(role_label(role))} <small>{count}</small></h3>
    <ul class="role-permissions">{granted}</ul>
    <ul class="role-members">{people}</ul>
</div>"""

    def render(self) -> str:
        groups = []
        for entry in self.matrix["roles"]:
            permissions = [
                CAPABILITY_LABELS.get(name, name)
                for name, granted in entry["permissions"].items()
                if granted
            ]
            groups.append(self._group(entry["name"], permissions))
        if any(u.role is None for u in self.users):
            groups.append(self._group(None, []))
        return f"""<section class="card">
    <h2>Grupos de Permissões</h2>
    <p class="card-description">Visualize os usuários e suas permissões por grupo</p>
    {"".join(groups)}
</section>"""
