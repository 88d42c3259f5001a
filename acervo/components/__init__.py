from acervo.components.admin import PendingUsersCard, RoleGroupsCard, UserTable, role_label
from acervo.components.base import Component, Renderable, render_content
from acervo.components.forms import CollectionSummary, LoginForm, QuickAddButton
from acervo.components.layout import Layout
from acervo.components.notices import (
    AccessDeniedNotice,
    AccessErrorNotice,
    LoadingIndicator,
    LoadingScreen,
    PendingApprovalMessage,
    Toast,
)

__all__ = [
    "AccessDeniedNotice",
    "AccessErrorNotice",
    "CollectionSummary",
    "Component",
    "Layout",
    "LoadingIndicator",
    "LoadingScreen",
    "LoginForm",
    "PendingApprovalMessage",
    "PendingUsersCard",
    "QuickAddButton",
    "RoleGroupsCard",
    "Renderable",
    "Toast",
    "UserTable",
    "render_content",
    "role_label",
]
