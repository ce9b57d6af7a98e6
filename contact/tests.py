from django.test import TestCase
from django.urls import reverse

from accounts.testing import PortalFixturesMixin
from contact.models import ContactMessage


def make_message(**kwargs):
    fields = {
        "name": "Visitor",
        "email": "visitor@example.com",
        "subject": "Admissions",
        "message": "When do applications open?",
    }
    fields.update(kwargs)
    return ContactMessage.objects.create(**fields)


class PublicContactForm(TestCase):
    def test_anyone_can_submit(self):
        resp = self.client.post(
            reverse("contact:index"),
            {
                "name": "Visitor",
                "email": "visitor@example.com",
                "subject": "Admissions",
                "message": "Hello",
            },
            follow=True,
        )
        self.assertContains(resp, "Message sent successfully!")
        self.assertEqual(ContactMessage.objects.get().status, "unread")

    def test_missing_fields(self):
        resp = self.client.post(reverse("contact:index"), {"name": "Visitor"})
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(ContactMessage.objects.exists())


class StaffInbox(PortalFixturesMixin, TestCase):
    def setUp(self):
        self.teacher = self.make_teacher()
        self.client.force_login(self.teacher)

    def test_parents_denied(self):
        self.client.force_login(self.make_parent())
        self.assertEqual(self.client.get(reverse("contact:inbox")).status_code, 403)

    def test_status_filter(self):
        make_message(subject="new")
        make_message(subject="done", status="replied")
        resp = self.client.get(reverse("contact:inbox"), {"status": "replied"})
        self.assertEqual([m.subject for m in resp.context["contact_messages"]], ["done"])

    def test_opening_marks_read(self):
        msg = make_message()
        self.client.get(reverse("contact:detail", args=[msg.pk]))
        msg.refresh_from_db()
        self.assertEqual(msg.status, "read")

    def test_opening_keeps_replied(self):
        msg = make_message(status="replied")
        self.client.get(reverse("contact:detail", args=[msg.pk]))
        msg.refresh_from_db()
        self.assertEqual(msg.status, "replied")

    def test_update_status(self):
        msg = make_message()
        self.client.post(reverse("contact:update_status", args=[msg.pk]), {"status": "replied"})
        msg.refresh_from_db()
        self.assertEqual(msg.status, "replied")

    def test_invalid_status(self):
        msg = make_message()
        resp = self.client.post(
            reverse("contact:update_status", args=[msg.pk]), {"status": "archived"}
        )
        self.assertEqual(resp.status_code, 400)

    def test_delete(self):
        msg = make_message()
        self.client.post(reverse("contact:delete", args=[msg.pk]))
        self.assertFalse(ContactMessage.objects.exists())

    def test_missing_message(self):
        self.assertEqual(
            self.client.get(reverse("contact:detail", args=[999999])).status_code, 404
        )
