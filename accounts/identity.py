from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .models import Role


class ActorKind(str, Enum):
    ANONYMOUS = "anonymous"
    ADMIN = "admin"
    TEACHER = "teacher"
    PARENT = "parent"


_KIND_BY_ROLE = {
    Role.ADMIN: ActorKind.ADMIN,
    Role.TEACHER: ActorKind.TEACHER,
    Role.PARENT: ActorKind.PARENT,
}


@dataclass(frozen=True)
class Actor:
    """
    Request identity as seen by the visibility and approval checks.

    ``approved`` only carries meaning for parents; staff kinds are always
    approved and anonymous actors never are.
    """

    kind: ActorKind
    user_id: int | None = None
    approved: bool = False

    @classmethod
    def anonymous(cls) -> "Actor":
        return cls(ActorKind.ANONYMOUS)

    @classmethod
    def from_user(cls, user) -> "Actor":
        if user is None or not getattr(user, "is_authenticated", False):
            return cls.anonymous()
        kind = _KIND_BY_ROLE.get(user.role)
        if kind is None:
            # role-less accounts see what anonymous visitors see
            return cls.anonymous()
        approved = True if kind is not ActorKind.PARENT else bool(user.is_approved)
        return cls(kind, user.pk, approved)

    @property
    def is_authenticated(self) -> bool:
        return self.kind is not ActorKind.ANONYMOUS

    @property
    def is_admin(self) -> bool:
        return self.kind is ActorKind.ADMIN

    @property
    def is_teacher(self) -> bool:
        return self.kind is ActorKind.TEACHER

    @property
    def is_parent(self) -> bool:
        return self.kind is ActorKind.PARENT

    @property
    def is_staff_member(self) -> bool:
        return self.kind in (ActorKind.ADMIN, ActorKind.TEACHER)


def actor_for(request) -> Actor:
    return Actor.from_user(getattr(request, "user", None))
