"""
Authorization checks for portal actions.

Every handler composes an explicit ``check_authorization`` call (directly or
through the ``authorize`` decorator) before touching data. The check is a
pure function of the actor, the action and the already-loaded target record
and answers a ``Decision`` instead of writing a response itself.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from functools import wraps

from django.contrib.auth.views import redirect_to_login
from django.shortcuts import redirect

from .errors import AuthorizationDenied, NotFound
from .identity import Actor, ActorKind, actor_for

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    ALLOW = "allow"
    DENY_AUTH = "deny_auth"
    DENY_NOT_FOUND = "deny_not_found"
    REDIRECT_PENDING_APPROVAL = "redirect_pending_approval"
    REDIRECT_LOGIN = "redirect_login"


@dataclass(frozen=True)
class Policy:
    login: bool = True
    kinds: tuple = ()
    approved: bool = True
    pending_only: bool = False
    needs_target: bool = False
    owner_attr: str | None = None
    announcement_visible: bool = False


_ADMIN = (ActorKind.ADMIN,)
_STAFF = (ActorKind.ADMIN, ActorKind.TEACHER)
_PARENT = (ActorKind.PARENT,)


class Action(str, Enum):
    BROWSE = "browse"
    VIEW_ANNOUNCEMENT = "view_announcement"
    REACT = "react"
    COMMENT = "comment"
    EDIT_COMMENT = "edit_comment"
    MESSAGE = "message"
    DELETE_MESSAGE = "delete_message"
    MANAGE_ANNOUNCEMENTS = "manage_announcements"
    MANAGE_USERS = "manage_users"
    MANAGE_STUDENTS = "manage_students"
    VIEW_NOTIFICATIONS = "view_notifications"
    VIEW_CONTACT_INBOX = "view_contact_inbox"
    SUBMIT_CHILDREN_PENDING = "submit_children_pending"
    MANAGE_OWN_CHILDREN = "manage_own_children"
    EDIT_OWN_CHILD = "edit_own_child"


POLICIES = {
    Action.BROWSE: Policy(login=False),
    Action.VIEW_ANNOUNCEMENT: Policy(
        login=False, needs_target=True, announcement_visible=True
    ),
    Action.REACT: Policy(needs_target=True, announcement_visible=True),
    Action.COMMENT: Policy(needs_target=True, announcement_visible=True),
    Action.EDIT_COMMENT: Policy(needs_target=True, owner_attr="author_id"),
    Action.MESSAGE: Policy(),
    Action.DELETE_MESSAGE: Policy(needs_target=True, owner_attr="sender_id"),
    Action.MANAGE_ANNOUNCEMENTS: Policy(kinds=_ADMIN),
    Action.MANAGE_USERS: Policy(kinds=_ADMIN),
    Action.MANAGE_STUDENTS: Policy(kinds=_ADMIN),
    Action.VIEW_NOTIFICATIONS: Policy(kinds=_ADMIN),
    Action.VIEW_CONTACT_INBOX: Policy(kinds=_STAFF),
    Action.SUBMIT_CHILDREN_PENDING: Policy(
        kinds=_PARENT, approved=False, pending_only=True
    ),
    Action.MANAGE_OWN_CHILDREN: Policy(kinds=_PARENT),
    Action.EDIT_OWN_CHILD: Policy(
        kinds=_PARENT, needs_target=True, owner_attr="parent_id"
    ),
}


def is_self_or_admin(actor: Actor, owner_id) -> bool:
    if actor.is_admin:
        return True
    return actor.user_id is not None and actor.user_id == owner_id


def is_role(actor: Actor, *kinds: ActorKind) -> bool:
    return actor.kind in kinds


def is_approved(actor: Actor) -> bool:
    if not actor.is_authenticated:
        return False
    return not actor.is_parent or actor.approved


def check_authorization(actor: Actor, action: Action, target=None) -> Decision:
    """
    Decide whether ``actor`` may perform ``action`` on ``target``.

    Checks run in a fixed order: identity, role, approval gate, record
    existence, then ownership/visibility of the record. ``target`` is the
    record the caller already looked up, or ``None`` when the lookup found
    nothing.
    """
    policy = POLICIES[action]

    if policy.login and not actor.is_authenticated:
        return Decision.REDIRECT_LOGIN
    if policy.kinds and not is_role(actor, *policy.kinds):
        return Decision.DENY_AUTH
    if policy.pending_only:
        if actor.approved:
            return Decision.DENY_AUTH
    elif policy.approved and actor.is_authenticated and not is_approved(actor):
        return Decision.REDIRECT_PENDING_APPROVAL

    if policy.needs_target and target is None:
        return Decision.DENY_NOT_FOUND
    if policy.owner_attr and not is_self_or_admin(
        actor, getattr(target, policy.owner_attr)
    ):
        return Decision.DENY_AUTH
    if policy.announcement_visible:
        from content.visibility import is_visible, viewer_for

        if not is_visible(viewer_for(actor), target):
            return Decision.DENY_AUTH
    return Decision.ALLOW


def deny(request, decision: Decision):
    """Turn a non-allow decision into the matching response or exception."""
    if decision is Decision.REDIRECT_LOGIN:
        return redirect_to_login(request.get_full_path())
    if decision is Decision.REDIRECT_PENDING_APPROVAL:
        return redirect("accounts:pending_approval")
    if decision is Decision.DENY_NOT_FOUND:
        raise NotFound()
    logger.info(
        "Access denied: user=%s path=%s",
        getattr(request.user, "pk", None),
        request.path,
    )
    raise AuthorizationDenied()


def authorize(action: Action):
    """
    Decorator for handlers whose gate does not depend on a record.
    The resolved ``Actor`` is attached to the request as ``request.actor``.
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            actor = actor_for(request)
            request.actor = actor
            decision = check_authorization(actor, action)
            if decision is not Decision.ALLOW:
                return deny(request, decision)
            return view_func(request, *args, **kwargs)
        return _wrapped
    return decorator
