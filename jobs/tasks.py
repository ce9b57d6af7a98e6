import logging

from django_rq import job

from accounts.models import Role, User
from mailer.sending import send_logged_email, send_templated_email

logger = logging.getLogger(__name__)


@job("mail")
def send_welcome_email(user_id: int):
    user = User.objects.filter(pk=user_id).first()
    if not user:
        return
    send_templated_email(
        user,
        "emails/welcome",
        {"user": user, "role": user.get_role_display()},
        tags=["welcome"],
    )


@job("mail")
def send_broadcast_email(user_id: int, subject: str, message: str):
    user = User.objects.filter(pk=user_id).first()
    if not user:
        return
    send_logged_email(user, subject, message)


@job("mail")
def send_admin_notification_email(notification_id: int):
    from notifications.models import AdminNotification

    note = AdminNotification.objects.filter(pk=notification_id).first()
    if not note:
        return
    admins = User.objects.filter(role=Role.ADMIN, is_active=True)
    for admin in admins:
        try:
            send_templated_email(
                admin,
                "emails/admin_notification",
                {"user": admin, "notification": note},
                tags=["admin-notification", note.type],
            )
        except Exception as e:
            logger.warning(
                "Notification email failed: notification=%s admin=%s err=%s",
                note.pk,
                admin.pk,
                str(e),
            )
