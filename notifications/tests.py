from unittest import mock

from django.test import TestCase
from django.urls import reverse

from accounts.testing import PortalFixturesMixin
from notifications.models import AdminNotification
from students import services


def link_fields(index_no):
    return {
        "index_no": index_no,
        "first_name": "Zawadi",
        "last_name": "Otieno",
        "grade": "Form I",
        "school_class": None,
    }


class NotificationLifecycle(PortalFixturesMixin, TestCase):
    def setUp(self):
        self.admin = self.make_admin()
        self.parent = self.make_parent()

    def test_approval_clears_only_its_own_notification(self):
        first = services.submit_guardian_link(self.parent, link_fields("S-1"))
        services.submit_guardian_link(self.parent, link_fields("S-2"))
        services.decide_guardian_link(self.admin, first.pk, services.APPROVE)
        unread = AdminNotification.objects.filter(is_read=False)
        self.assertEqual([n.related_student.index_no for n in unread], ["S-2"])

    def test_rejection_leaves_one_record(self):
        student = services.submit_guardian_link(self.parent, link_fields("S-3"))
        services.decide_guardian_link(self.admin, student.pk, services.REJECT, "Duplicate")
        note = AdminNotification.objects.get()
        self.assertEqual(note.type, AdminNotification.STUDENT_REJECTED)
        self.assertIsNone(note.related_student)
        self.assertIn("Reason: Duplicate", note.message)

    def test_admin_email_enqueued_after_commit(self):
        with mock.patch("notifications.receivers.enqueue_best_effort") as enqueue:
            with self.captureOnCommitCallbacks(execute=True):
                services.submit_guardian_link(self.parent, link_fields("S-4"))
        note = AdminNotification.objects.get()
        self.assertEqual(enqueue.call_args[0][1], note.pk)


class NotificationViews(PortalFixturesMixin, TestCase):
    def setUp(self):
        self.admin = self.make_admin()
        parent = self.make_parent()
        services.submit_guardian_link(parent, link_fields("S-10"))
        services.submit_guardian_link(parent, link_fields("S-11"))
        self.client.force_login(self.admin)

    def test_index_shows_unread_count(self):
        resp = self.client.get(reverse("notifications:index"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context["unread_count"], 2)

    def test_teacher_denied(self):
        self.client.force_login(self.make_teacher())
        self.assertEqual(self.client.get(reverse("notifications:index")).status_code, 403)

    def test_mark_read(self):
        note = AdminNotification.objects.first()
        self.client.post(reverse("notifications:mark_read", args=[note.pk]))
        note.refresh_from_db()
        self.assertTrue(note.is_read)
        self.assertEqual(AdminNotification.objects.filter(is_read=False).count(), 1)

    def test_mark_all_read(self):
        self.client.post(reverse("notifications:mark_all_read"))
        self.assertFalse(AdminNotification.objects.filter(is_read=False).exists())
