import logging

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from accounts.authorization import is_self_or_admin
from accounts.errors import (
    AuthorizationDenied,
    ConflictError,
    DependencyFailure,
    NotFound,
)
from accounts.identity import Actor
from accounts.models import Role
from .models import VALID_GRADES, Student
from .signals import (
    guardian_link_approved,
    guardian_link_rejected,
    guardian_link_submitted,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("index_no", "first_name", "last_name", "grade")
DUPLICATE_INDEX = "Student with this index number already exists"
REVIEWED_FIELDS = ("index_no", "grade", "school_class")

APPROVE = "approve"
REJECT = "reject"


def _clean(fields) -> dict:
    data = {}
    missing = []
    for name in REQUIRED_FIELDS:
        value = str(fields.get(name) or "").strip()
        if not value:
            missing.append(name)
        data[name] = value
    if missing:
        raise ValidationError("All fields are required", code="required")
    if data["grade"] not in VALID_GRADES:
        raise ValidationError("Invalid grade", code="invalid")
    school_class = fields.get("school_class")
    if school_class is not None and school_class.grade != data["grade"]:
        raise ValidationError(
            "Class does not belong to the selected grade", code="invalid"
        )
    data["school_class"] = school_class
    return data


def _ensure_index_free(index_no: str, exclude_id=None):
    # re-checked inside the writing transaction; the unique index backs it up
    qs = Student.objects.filter(index_no=index_no)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    if qs.exists():
        raise ConflictError(DUPLICATE_INDEX)


def _save(student: Student, **kwargs):
    try:
        with transaction.atomic():
            student.save(**kwargs)
    except IntegrityError:
        raise ConflictError(DUPLICATE_INDEX)


def submit_guardian_link(parent, fields) -> Student:
    """
    Parent self-service: attach a child to ``parent``. The link starts
    unapproved and admins are notified through ``guardian_link_submitted``.
    """
    if parent.role != Role.PARENT:
        raise AuthorizationDenied("Only parents can add children")
    data = _clean(fields)
    try:
        with transaction.atomic():
            _ensure_index_free(data["index_no"])
            student = Student(parent=parent, is_approved=False, **data)
            _save(student)
            guardian_link_submitted.send(
                sender=Student, student=student, parent=parent
            )
    except DatabaseError:
        logger.exception("Guardian link submission failed: parent=%s", parent.pk)
        raise DependencyFailure()
    logger.info(
        "Guardian link submitted: student=%s parent=%s grade=%s",
        student.pk,
        parent.pk,
        student.grade,
    )
    return student


def create_guardian_link(admin, parent, fields) -> Student:
    """Admin-side creation: the link is approved from the start."""
    if admin.role != Role.ADMIN:
        raise AuthorizationDenied()
    if parent is None or parent.role != Role.PARENT:
        raise ValidationError("A parent account is required", code="invalid")
    data = _clean(fields)
    try:
        with transaction.atomic():
            _ensure_index_free(data["index_no"])
            student = Student(
                parent=parent,
                is_approved=True,
                approved_by=admin,
                approved_at=timezone.now(),
                **data,
            )
            _save(student)
    except DatabaseError:
        logger.exception("Guardian link creation failed: admin=%s", admin.pk)
        raise DependencyFailure()
    return student


def get_owned_link(actor: Actor, link_id) -> Student:
    """
    Look a link up by id first, then authorize ownership. An absent record
    is ``NotFound``; a record owned by another parent is ``AuthorizationDenied``.
    """
    student = Student.objects.select_related("school_class").filter(pk=link_id).first()
    if student is None:
        raise NotFound("Student not found")
    if not is_self_or_admin(actor, student.parent_id):
        raise AuthorizationDenied()
    return student


def update_guardian_link(actor: Actor, link_id, fields, parent=None) -> Student:
    """
    Update a link's details. A parent changing the index number, grade or
    class of an approved link sends it back for admin review.
    """
    data = _clean(fields)
    resubmitted = False
    try:
        with transaction.atomic():
            get_owned_link(actor, link_id)
            student = Student.objects.select_for_update().get(pk=link_id)
            _ensure_index_free(data["index_no"], exclude_id=student.pk)
            changed = any(
                getattr(student, key) != data[key] for key in REVIEWED_FIELDS
            )
            for key, value in data.items():
                setattr(student, key, value)
            if parent is not None and actor.is_admin:
                student.parent = parent
            if changed and student.is_approved and not actor.is_admin:
                student.is_approved = False
                student.approved_by = None
                student.approved_at = None
                resubmitted = True
            _save(student)
            if resubmitted:
                guardian_link_submitted.send(
                    sender=Student, student=student, parent=student.parent
                )
    except Student.DoesNotExist:
        raise NotFound("Student not found")
    except DatabaseError:
        logger.exception("Guardian link update failed: id=%s", link_id)
        raise DependencyFailure()
    if resubmitted:
        logger.info("Guardian link resubmitted for review: id=%s", student.pk)
    return student


def delete_guardian_link(actor: Actor, link_id) -> None:
    student = get_owned_link(actor, link_id)
    try:
        student.delete()
    except DatabaseError:
        logger.exception("Guardian link delete failed: id=%s", link_id)
        raise DependencyFailure()
    logger.info("Guardian link deleted: id=%s by=%s", link_id, actor.user_id)


def decide_guardian_link(admin, link_id, decision: str, notes: str = "") -> None:
    """
    Admin decision on a pending link.

    ``approve`` is one-way and records who approved and when. ``reject``
    deletes the link and leaves a rejection notification carrying ``notes``
    (or the configured default reason).
    """
    if admin.role != Role.ADMIN:
        raise AuthorizationDenied()
    if decision not in (APPROVE, REJECT):
        raise ValidationError("Invalid decision", code="invalid")
    notes = (notes or "").strip()
    try:
        with transaction.atomic():
            student = (
                Student.objects.select_for_update()
                .select_related("parent")
                .filter(pk=link_id)
                .first()
            )
            if student is None:
                raise NotFound("Student not found")
            if decision == APPROVE:
                _approve(student, admin, notes)
            else:
                _reject(student, admin, notes)
    except DatabaseError:
        logger.exception("Guardian link decision failed: id=%s", link_id)
        raise DependencyFailure()


def _approve(student: Student, admin, notes: str):
    if student.is_approved:
        return
    student.is_approved = True
    student.approved_by = admin
    student.approved_at = timezone.now()
    student.approval_notes = notes
    student.save(
        update_fields=[
            "is_approved",
            "approved_by",
            "approved_at",
            "approval_notes",
            "updated_at",
        ]
    )
    guardian_link_approved.send(
        sender=Student, student=student, admin=admin, notes=notes
    )
    logger.info("Guardian link approved: id=%s by=%s", student.pk, admin.pk)


def _reject(student: Student, admin, notes: str):
    if student.is_approved:
        raise ConflictError("Student is already approved")
    reason = notes or settings.REJECTION_DEFAULT_REASON
    snapshot = {
        "id": student.pk,
        "index_no": student.index_no,
        "name": student.full_name,
        "grade": student.grade,
    }
    parent = student.parent
    student.delete()
    guardian_link_rejected.send(
        sender=Student,
        snapshot=snapshot,
        parent=parent,
        admin=admin,
        reason=reason,
    )
    logger.info("Guardian link rejected: id=%s by=%s", snapshot["id"], admin.pk)
