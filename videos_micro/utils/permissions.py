from typing import Dict, FrozenSet, Union
import enum

from models.users_models import Role, User


class Capability(enum.Enum):
    view_unapproved = "view_unapproved"
    auto_approve = "auto_approve"
    moderate_comments = "moderate_comments"


ROLE_CAPABILITIES: Dict[Role, FrozenSet[Capability]] = {
    Role.consumer: frozenset(),
    Role.admin: frozenset({
        Capability.view_unapproved,
        Capability.auto_approve,
        Capability.moderate_comments,
    }),
}


def has_capability(subject: Union[User, Role, None], capability: Capability) -> bool:
    if subject is None:
        return False
    role = subject.role if isinstance(subject, User) else subject
    return capability in ROLE_CAPABILITIES.get(role, frozenset())
