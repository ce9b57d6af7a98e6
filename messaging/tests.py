from django.core.exceptions import ValidationError
from django.test import TestCase
from django.urls import reverse

from accounts.errors import NotFound
from accounts.testing import PortalFixturesMixin
from messaging import services
from messaging.models import Conversation, DirectMessage


class ConversationPairs(PortalFixturesMixin, TestCase):
    def setUp(self):
        self.a = self.make_teacher()
        self.b = self.make_parent()

    def test_pair_is_order_independent(self):
        first = services.get_or_create_conversation(self.b.pk, self.a.pk)
        second = services.get_or_create_conversation(self.a.pk, self.b.pk)
        self.assertEqual(first.pk, second.pk)
        self.assertLess(first.user1_id, first.user2_id)
        self.assertEqual(Conversation.objects.count(), 1)

    def test_other(self):
        conv = services.get_or_create_conversation(self.a.pk, self.b.pk)
        self.assertEqual(conv.other(self.a.pk), self.b)
        self.assertEqual(conv.other(self.b.pk), self.a)


class SendingMessages(PortalFixturesMixin, TestCase):
    def setUp(self):
        self.teacher = self.make_teacher()
        self.parent = self.make_parent()

    def test_send_creates_conversation_and_stamps_it(self):
        dm = services.send_message(self.parent, self.teacher.pk, " Homework ", "Question")
        self.assertEqual(dm.subject, "Homework")
        self.assertFalse(dm.is_read)
        conv = Conversation.objects.get()
        self.assertIsNotNone(conv.last_message_at)

    def test_blank_fields_rejected(self):
        with self.assertRaisesMessage(ValidationError, "All fields are required"):
            services.send_message(self.parent, self.teacher.pk, "Hi", "   ")
        self.assertFalse(DirectMessage.objects.exists())

    def test_unknown_receiver(self):
        with self.assertRaises(NotFound):
            services.send_message(self.parent, 999999, "Hi", "There")

    def test_cannot_message_self(self):
        with self.assertRaises(ValidationError):
            services.send_message(self.parent, self.parent.pk, "Hi", "There")


class InboxAndReading(PortalFixturesMixin, TestCase):
    def setUp(self):
        self.teacher = self.make_teacher()
        self.parent = self.make_parent()
        self.other = self.make_parent("other@example.com")

    def test_inbox_unread_counts_and_order(self):
        services.send_message(self.parent, self.teacher.pk, "1", "first")
        services.send_message(self.parent, self.teacher.pk, "2", "second")
        services.send_message(self.teacher, self.other.pk, "3", "third")
        convs = services.inbox(self.teacher)
        self.assertEqual([c.other_user for c in convs], [self.other, self.parent])
        self.assertEqual([c.unread_count for c in convs], [0, 2])

    def test_open_marks_incoming_read_only(self):
        services.send_message(self.parent, self.teacher.pk, "in", "incoming")
        services.send_message(self.teacher, self.parent.pk, "out", "outgoing")
        other, thread = services.open_conversation(self.teacher, self.parent.pk)
        self.assertEqual(other, self.parent)
        self.assertEqual(len(thread), 2)
        self.assertTrue(DirectMessage.objects.get(subject="in").is_read)
        self.assertFalse(DirectMessage.objects.get(subject="out").is_read)

    def test_conversations_are_private(self):
        services.send_message(self.parent, self.teacher.pk, "x", "secret")
        self.assertEqual(services.inbox(self.other), [])


class MessagingViews(PortalFixturesMixin, TestCase):
    def setUp(self):
        self.teacher = self.make_teacher()
        self.parent = self.make_parent()
        self.client.force_login(self.parent)

    def test_inbox_requires_login(self):
        self.client.logout()
        resp = self.client.get(reverse("messaging:inbox"))
        self.assertEqual(resp.status_code, 302)
        self.assertIn(reverse("account_login"), resp["Location"])

    def test_send_redirects_to_conversation(self):
        resp = self.client.post(
            reverse("messaging:send"),
            {"receiver": self.teacher.pk, "subject": "Trip", "message": "Is it on?"},
        )
        self.assertRedirects(
            resp,
            reverse("messaging:conversation", args=[self.teacher.pk]),
            fetch_redirect_response=False,
        )
        self.assertTrue(DirectMessage.objects.filter(receiver=self.teacher).exists())

    def test_send_missing_fields(self):
        resp = self.client.post(
            reverse("messaging:send"), {"receiver": self.teacher.pk, "subject": "", "message": ""}
        )
        self.assertEqual(resp.status_code, 302)
        self.assertFalse(DirectMessage.objects.exists())

    def test_conversation_with_unknown_user(self):
        resp = self.client.get(reverse("messaging:conversation", args=[999999]))
        self.assertEqual(resp.status_code, 404)

    def test_conversation_with_self_redirects(self):
        resp = self.client.get(reverse("messaging:conversation", args=[self.parent.pk]))
        self.assertRedirects(resp, reverse("messaging:inbox"), fetch_redirect_response=False)

    def test_sender_deletes_own_message(self):
        dm = services.send_message(self.parent, self.teacher.pk, "Oops", "wrong")
        resp = self.client.post(reverse("messaging:delete", args=[dm.pk]))
        self.assertEqual(resp.status_code, 302)
        self.assertFalse(DirectMessage.objects.filter(pk=dm.pk).exists())

    def test_receiver_cannot_delete(self):
        dm = services.send_message(self.teacher, self.parent.pk, "Note", "kept")
        resp = self.client.post(reverse("messaging:delete", args=[dm.pk]))
        self.assertEqual(resp.status_code, 403)
        self.assertTrue(DirectMessage.objects.filter(pk=dm.pk).exists())

    def test_delete_missing_message(self):
        resp = self.client.post(reverse("messaging:delete", args=[999999]))
        self.assertEqual(resp.status_code, 404)
