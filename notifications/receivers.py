import logging

from django.db import transaction
from django.dispatch import receiver

from jobs.dispatch import enqueue_best_effort
from students.signals import (
    guardian_link_approved,
    guardian_link_rejected,
    guardian_link_submitted,
)
from .models import AdminNotification

logger = logging.getLogger(__name__)


def _email_admins(note):
    from jobs.tasks import send_admin_notification_email

    transaction.on_commit(
        lambda: enqueue_best_effort(send_admin_notification_email, note.pk)
    )


@receiver(guardian_link_submitted)
def on_link_submitted(sender, student, parent, **kwargs):
    note = AdminNotification.objects.create(
        type=AdminNotification.STUDENT_ADDED,
        title="New student pending approval",
        message=(
            f"{parent.display_name} added {student.full_name} "
            f"(index {student.index_no}, {student.grade}). Please review."
        ),
        related_user=parent,
        related_student=student,
    )
    _email_admins(note)


@receiver(guardian_link_approved)
def on_link_approved(sender, student, admin, **kwargs):
    n = AdminNotification.objects.filter(
        related_student=student,
        type=AdminNotification.STUDENT_ADDED,
        is_read=False,
    ).update(is_read=True)
    logger.debug("Cleared %s notification(s) for student=%s", n, student.pk)


@receiver(guardian_link_rejected)
def on_link_rejected(sender, snapshot, parent, admin, reason, **kwargs):
    AdminNotification.objects.create(
        type=AdminNotification.STUDENT_REJECTED,
        title="Student rejected",
        message=(
            f"{snapshot['name']} (index {snapshot['index_no']}, {snapshot['grade']}) "
            f"submitted by {parent.display_name} was rejected. Reason: {reason}"
        ),
        related_user=parent,
    )
