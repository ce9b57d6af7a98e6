from unittest import mock

from django.core import mail
from django.test import TestCase, override_settings

from accounts.testing import PortalFixturesMixin
from jobs import tasks
from jobs.dispatch import enqueue_best_effort
from mailer.models import EmailLog
from mailer.sending import send_logged_email
from notifications.models import AdminNotification

LOCMEM = "django.core.mail.backends.locmem.EmailBackend"


class EnqueueBestEffort(TestCase):
    def test_returns_true_when_queued(self):
        job = mock.Mock()
        self.assertTrue(enqueue_best_effort(job, 1, "x"))
        job.delay.assert_called_once_with(1, "x")

    def test_broker_outage_is_swallowed(self):
        job = mock.Mock(__name__="send_welcome_email")
        job.delay.side_effect = ConnectionError("redis down")
        with self.assertLogs("jobs.dispatch", level="WARNING"):
            self.assertFalse(enqueue_best_effort(job, 1))


@override_settings(EMAIL_BACKEND=LOCMEM)
class LoggedDelivery(PortalFixturesMixin, TestCase):
    def setUp(self):
        self.user = self.make_parent()

    def test_success_is_recorded(self):
        self.assertTrue(send_logged_email(self.user, "Closing early", "Friday at noon"))
        log = EmailLog.objects.get()
        self.assertTrue(log.is_sent)
        self.assertIsNotNone(log.sent_at)
        self.assertEqual(mail.outbox[0].to, [self.user.email])
        self.assertEqual(mail.outbox[0].subject, "Closing early")

    def test_failure_is_recorded_not_raised(self):
        with mock.patch(
            "mailer.sending.AnymailMessage.send", side_effect=RuntimeError("rejected")
        ):
            self.assertFalse(send_logged_email(self.user, "Closing early", "Friday"))
        log = EmailLog.objects.get()
        self.assertFalse(log.is_sent)
        self.assertEqual(log.error, "rejected")


@override_settings(EMAIL_BACKEND=LOCMEM, SITE_NAME="Test School")
class MailJobs(PortalFixturesMixin, TestCase):
    def test_welcome_email(self):
        user = self.make_teacher()
        tasks.send_welcome_email(user.pk)
        self.assertEqual(mail.outbox[0].subject, "Welcome to Test School")

    def test_welcome_for_missing_user_is_noop(self):
        tasks.send_welcome_email(999999)
        self.assertEqual(mail.outbox, [])

    def test_broadcast_job_logs(self):
        user = self.make_parent()
        tasks.send_broadcast_email(user.pk, "Hello", "Body")
        self.assertTrue(EmailLog.objects.get(user=user).is_sent)

    def test_admin_notification_reaches_every_admin(self):
        self.make_admin("a1@example.com")
        self.make_admin("a2@example.com")
        note = AdminNotification.objects.create(
            type=AdminNotification.STUDENT_ADDED, title="New student", message="Review"
        )
        tasks.send_admin_notification_email(note.pk)
        self.assertEqual(
            sorted(m.to[0] for m in mail.outbox), ["a1@example.com", "a2@example.com"]
        )
        self.assertEqual(mail.outbox[0].subject, "[Test School] New student")
