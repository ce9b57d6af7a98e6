"""
Announcement visibility.

Two independent axes decide whether a viewer sees an announcement:

* scope (``Announcement.visibility``) is matched against the viewer's role;
* audience (``Announcement.target``) is matched against the grades and
  classes of the viewer's *approved* children.

``is_visible`` is the pure per-record predicate; ``visibility_q`` expresses
the same rule as an ORM filter for listings. Both must always agree.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from django.db.models import Q

from accounts.identity import Actor, ActorKind
from .models import Target, Visibility

_SCOPES = {
    ActorKind.ANONYMOUS: frozenset({Visibility.ALL.value}),
    ActorKind.PARENT: frozenset({Visibility.ALL.value, Visibility.PARENTS.value}),
    ActorKind.TEACHER: frozenset({Visibility.ALL.value, Visibility.TEACHERS.value}),
    # admins are not scope-filtered
    ActorKind.ADMIN: None,
}

# kinds whose feed is narrowed by the audience axis
_AUDIENCE_FILTERED = frozenset({ActorKind.ANONYMOUS, ActorKind.PARENT})


@dataclass(frozen=True)
class Viewer:
    kind: ActorKind
    grades: frozenset = field(default_factory=frozenset)
    class_ids: frozenset = field(default_factory=frozenset)


def viewer_for(actor: Actor) -> Viewer:
    """Resolve the audience sets of ``actor`` from approved children only."""
    if actor.kind is not ActorKind.PARENT:
        return Viewer(actor.kind)
    from students.models import Student

    rows = (
        Student.objects.approved()
        .filter(parent_id=actor.user_id)
        .values_list("grade", "school_class_id")
    )
    grades = set()
    class_ids = set()
    for grade, class_id in rows:
        grades.add(grade)
        if class_id is not None:
            class_ids.add(class_id)
    return Viewer(actor.kind, frozenset(grades), frozenset(class_ids))


def _scope_ok(viewer: Viewer, announcement) -> bool:
    allowed = _SCOPES[viewer.kind]
    return allowed is None or announcement.visibility in allowed


def _audience_ok(viewer: Viewer, announcement) -> bool:
    if viewer.kind not in _AUDIENCE_FILTERED:
        return True
    if announcement.target == Target.ALL:
        return True
    if announcement.target == Target.GRADE:
        return announcement.target_grade in viewer.grades
    if announcement.target == Target.CLASS:
        return announcement.target_class_id in viewer.class_ids
    return False


def is_visible(viewer: Viewer, announcement) -> bool:
    return _scope_ok(viewer, announcement) and _audience_ok(viewer, announcement)


def visibility_q(viewer: Viewer) -> Q:
    q = Q()
    allowed = _SCOPES[viewer.kind]
    if allowed is not None:
        q &= Q(visibility__in=sorted(allowed))
    if viewer.kind in _AUDIENCE_FILTERED:
        audience = Q(target=Target.ALL)
        if viewer.grades:
            audience |= Q(target=Target.GRADE, target_grade__in=sorted(viewer.grades))
        if viewer.class_ids:
            audience |= Q(target=Target.CLASS, target_class_id__in=sorted(viewer.class_ids))
        q &= audience
    return q
