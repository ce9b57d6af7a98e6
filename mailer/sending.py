import logging

from anymail.message import AnymailMessage
from django.conf import settings
from django.template.loader import render_to_string
from django.utils import timezone

from .models import EmailLog
from .rendering import render_email

logger = logging.getLogger(__name__)


def _provider_id(msg):
    status = getattr(msg, "anymail_status", None)
    return getattr(status, "message_id", None) if status else None


def send_templated_email(user, template_base, context, tags=None):
    context = {**context, "site_url": settings.SITE_URL, "site_name": settings.SITE_NAME}
    subject, text, html = render_email(template_base, context)
    msg = AnymailMessage(subject=subject, to=[user.email])
    if text:
        msg.body = text
    msg.attach_alternative(html, "text/html")
    msg.metadata = {"user_id": user.id}
    if tags:
        msg.tags = list(tags)
    msg.send()
    return _provider_id(msg)


def send_logged_email(user, subject, message) -> bool:
    """
    Send one broadcast message and record the outcome in ``EmailLog``.
    Delivery failures are logged and recorded, never raised.
    """
    log = EmailLog.objects.create(user=user, subject=subject, message=message)
    html = render_to_string(
        "emails/broadcast.html",
        {
            "user": user,
            "subject": subject,
            "message": message,
            "site_name": settings.SITE_NAME,
        },
    )
    msg = AnymailMessage(subject=subject, to=[user.email])
    msg.body = message
    msg.attach_alternative(html, "text/html")
    msg.metadata = {"user_id": user.id, "email_log_id": log.id}
    msg.tags = ["broadcast"]
    try:
        msg.send()
    except Exception as e:
        logger.warning("Broadcast email to %s failed: %s", user.email, str(e))
        log.error = str(e)[:255]
        log.save(update_fields=["error"])
        return False
    log.is_sent = True
    log.sent_at = timezone.now()
    log.provider_id = _provider_id(msg)
    log.save(update_fields=["is_sent", "sent_at", "provider_id"])
    return True
