from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from django.urls import reverse

from accounts import services
from accounts.authorization import Action, Decision, check_authorization
from accounts.errors import AuthorizationDenied, ConflictError, NotFound
from accounts.identity import Actor, ActorKind
from accounts.models import Role, User
from accounts.testing import PortalFixturesMixin


class ActorResolution(PortalFixturesMixin, TestCase):
    """Request identities map onto the closed set of actor kinds."""

    def test_anonymous(self):
        actor = Actor.from_user(None)
        self.assertIs(actor.kind, ActorKind.ANONYMOUS)
        self.assertFalse(actor.is_authenticated)
        self.assertFalse(actor.approved)

    def test_staff_are_always_approved(self):
        teacher = self.make_teacher()
        User.objects.filter(pk=teacher.pk).update(is_approved=False)
        teacher.refresh_from_db()
        actor = Actor.from_user(teacher)
        self.assertIs(actor.kind, ActorKind.TEACHER)
        self.assertTrue(actor.approved)

    def test_parent_carries_approval_flag(self):
        pending = self.make_parent("p1@example.com", approved=False)
        approved = self.make_parent("p2@example.com", approved=True)
        self.assertFalse(Actor.from_user(pending).approved)
        self.assertTrue(Actor.from_user(approved).approved)

    def test_new_parent_defaults_to_unapproved(self):
        user = User.objects.create_user(email="new@example.com", password="x" * 8)
        self.assertEqual(user.role, Role.PARENT)
        self.assertFalse(user.is_approved)


class AuthorizationDecisions(TestCase):
    """check_authorization answers a tagged decision in a fixed order."""

    admin = Actor(ActorKind.ADMIN, 1, True)
    teacher = Actor(ActorKind.TEACHER, 2, True)
    parent = Actor(ActorKind.PARENT, 3, True)
    pending = Actor(ActorKind.PARENT, 4, False)
    anon = Actor.anonymous()

    def test_anonymous_needs_login(self):
        self.assertIs(
            check_authorization(self.anon, Action.MESSAGE), Decision.REDIRECT_LOGIN
        )
        self.assertIs(
            check_authorization(self.anon, Action.MANAGE_USERS), Decision.REDIRECT_LOGIN
        )

    def test_browse_is_public(self):
        self.assertIs(check_authorization(self.anon, Action.BROWSE), Decision.ALLOW)

    def test_role_is_checked_before_approval(self):
        self.assertIs(
            check_authorization(self.pending, Action.MANAGE_USERS), Decision.DENY_AUTH
        )

    def test_pending_parent_redirected_from_regular_actions(self):
        self.assertIs(
            check_authorization(self.pending, Action.MESSAGE),
            Decision.REDIRECT_PENDING_APPROVAL,
        )
        self.assertIs(
            check_authorization(self.pending, Action.MANAGE_OWN_CHILDREN),
            Decision.REDIRECT_PENDING_APPROVAL,
        )

    def test_pending_only_action(self):
        self.assertIs(
            check_authorization(self.pending, Action.SUBMIT_CHILDREN_PENDING),
            Decision.ALLOW,
        )
        self.assertIs(
            check_authorization(self.parent, Action.SUBMIT_CHILDREN_PENDING),
            Decision.DENY_AUTH,
        )
        self.assertIs(
            check_authorization(self.teacher, Action.SUBMIT_CHILDREN_PENDING),
            Decision.DENY_AUTH,
        )

    def test_staff_inbox(self):
        self.assertIs(
            check_authorization(self.teacher, Action.VIEW_CONTACT_INBOX), Decision.ALLOW
        )
        self.assertIs(
            check_authorization(self.parent, Action.VIEW_CONTACT_INBOX),
            Decision.DENY_AUTH,
        )

    def test_missing_target_is_not_found(self):
        self.assertIs(
            check_authorization(self.parent, Action.EDIT_COMMENT, None),
            Decision.DENY_NOT_FOUND,
        )

    def test_ownership(self):
        own = mock.Mock(author_id=3)
        other = mock.Mock(author_id=99)
        self.assertIs(
            check_authorization(self.parent, Action.EDIT_COMMENT, own), Decision.ALLOW
        )
        self.assertIs(
            check_authorization(self.parent, Action.EDIT_COMMENT, other),
            Decision.DENY_AUTH,
        )
        self.assertIs(
            check_authorization(self.admin, Action.EDIT_COMMENT, other), Decision.ALLOW
        )


class UserServices(PortalFixturesMixin, TestCase):
    def setUp(self):
        self.admin = self.make_admin()

    @mock.patch("accounts.services.enqueue_best_effort")
    def test_create_user_is_approved_and_queues_welcome(self, enqueue):
        user = services.create_user("Mr Teacher", "t@example.com", "secret1", Role.TEACHER)
        self.assertTrue(user.is_approved)
        self.assertTrue(user.check_password("secret1"))
        self.assertEqual(enqueue.call_count, 1)
        self.assertEqual(enqueue.call_args[0][1], user.pk)

    @mock.patch("accounts.services.enqueue_best_effort")
    def test_created_parent_is_approved(self, enqueue):
        user = services.create_user("Mum", "mum@example.com", "secret1", Role.PARENT)
        self.assertTrue(user.is_approved)

    @mock.patch("accounts.services.enqueue_best_effort")
    def test_duplicate_email_conflicts(self, enqueue):
        with self.assertRaises(ConflictError):
            services.create_user("Dup", "ADMIN@example.com", "secret1", Role.PARENT)
        enqueue.assert_not_called()

    def test_update_email_conflict(self):
        other = self.make_teacher()
        with self.assertRaises(ConflictError) as ctx:
            services.update_user(other.pk, "T", self.admin.email, Role.TEACHER)
        self.assertEqual(ctx.exception.message, "Email already taken by another user")

    def test_update_keeps_password_when_blank(self):
        other = self.make_teacher()
        services.update_user(other.pk, "Renamed", other.email, Role.TEACHER, "")
        other.refresh_from_db()
        self.assertEqual(other.name, "Renamed")
        self.assertTrue(other.check_password(self.password))

    def test_cannot_delete_self(self):
        with self.assertRaises(AuthorizationDenied):
            services.delete_user(self.admin.pk, self.admin.pk)
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())

    def test_delete_missing_user(self):
        with self.assertRaises(NotFound):
            services.delete_user(self.admin.pk, 999999)

    def test_delete_cascades_children(self):
        parent = self.make_parent()
        self.make_child(parent)
        services.delete_user(self.admin.pk, parent.pk)
        self.assertFalse(parent.children.exists())

    def test_approve_parent_is_one_way(self):
        parent = self.make_parent(approved=False)
        services.approve_parent(parent.pk)
        services.approve_parent(parent.pk)
        parent.refresh_from_db()
        self.assertTrue(parent.is_approved)

    def test_approve_non_parent_conflicts(self):
        with self.assertRaises(ConflictError):
            services.approve_parent(self.make_teacher().pk)

    def test_list_users_filters(self):
        self.make_teacher()
        self.make_parent("zed@example.com")
        self.assertEqual(
            [u.email for u in services.list_users(Role.TEACHER)], ["teacher@example.com"]
        )
        self.assertEqual(
            [u.email for u in services.list_users(search="zed")], ["zed@example.com"]
        )
        self.assertEqual(services.role_counts()["admin"], 1)

    @mock.patch("accounts.services.enqueue_best_effort", side_effect=[True, False])
    def test_broadcast_counts(self, enqueue):
        recipients = [self.make_teacher(), self.make_parent()]
        queued, failed = services.broadcast(recipients, "Hello", "Body")
        self.assertEqual((queued, failed), (1, 1))


class UserAdminViews(PortalFixturesMixin, TestCase):
    def setUp(self):
        self.admin = self.make_admin()

    def test_users_list_admin_only(self):
        self.client.force_login(self.make_teacher())
        self.assertEqual(self.client.get(reverse("accounts:users")).status_code, 403)

    def test_users_list_requires_login(self):
        resp = self.client.get(reverse("accounts:users"))
        self.assertEqual(resp.status_code, 302)
        self.assertIn(reverse("account_login"), resp["Location"])

    def test_unapproved_parent_denied_on_admin_route(self):
        self.client.force_login(self.make_parent(approved=False))
        self.assertEqual(self.client.get(reverse("accounts:users")).status_code, 403)

    @mock.patch("accounts.services.enqueue_best_effort")
    def test_create_user_view(self, enqueue):
        self.client.force_login(self.admin)
        resp = self.client.post(
            reverse("accounts:user_create"),
            {"name": "New", "email": "new@example.com", "password": "secret1", "role": "teacher"},
        )
        self.assertRedirects(resp, reverse("accounts:users"), fetch_redirect_response=False)
        self.assertTrue(User.objects.filter(email="new@example.com", role="teacher").exists())

    def test_create_user_rejects_short_password(self):
        self.client.force_login(self.admin)
        resp = self.client.post(
            reverse("accounts:user_create"),
            {"name": "New", "email": "new@example.com", "password": "123", "role": "teacher"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(User.objects.filter(email="new@example.com").exists())

    def test_delete_self_forbidden(self):
        self.client.force_login(self.admin)
        resp = self.client.post(reverse("accounts:user_delete", args=[self.admin.pk]))
        self.assertEqual(resp.status_code, 403)

    def test_approve_parent_view(self):
        parent = self.make_parent(approved=False)
        self.client.force_login(self.admin)
        self.client.post(reverse("accounts:user_approve", args=[parent.pk]))
        parent.refresh_from_db()
        self.assertTrue(parent.is_approved)

    def test_user_detail(self):
        parent = self.make_parent()
        self.client.force_login(self.admin)
        resp = self.client.get(reverse("accounts:user_detail", args=[parent.pk]))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.context["target"], parent)


class PendingApprovalPage(PortalFixturesMixin, TestCase):
    def test_pending_parent_sees_notice(self):
        self.client.force_login(self.make_parent(approved=False))
        resp = self.client.get(reverse("accounts:pending_approval"))
        self.assertEqual(resp.status_code, 200)

    def test_others_redirected_home(self):
        self.client.force_login(self.make_parent(approved=True))
        resp = self.client.get(reverse("accounts:pending_approval"))
        self.assertRedirects(resp, reverse("content:home"), fetch_redirect_response=False)

    def test_pending_parent_redirected_from_messages(self):
        self.client.force_login(self.make_parent(approved=False))
        resp = self.client.get(reverse("messaging:inbox"))
        self.assertRedirects(
            resp, reverse("accounts:pending_approval"), fetch_redirect_response=False
        )


class SelfRegistration(TestCase):
    def test_signup_creates_pending_parent(self):
        resp = self.client.post(
            reverse("account_signup"),
            {
                "name": "Grace Hopper",
                "email": "grace@example.com",
                "password1": "Unusual-pass-4821",
                "password2": "Unusual-pass-4821",
            },
        )
        self.assertEqual(resp.status_code, 302)
        user = User.objects.get(email="grace@example.com")
        self.assertEqual(user.role, Role.PARENT)
        self.assertFalse(user.is_approved)
        self.assertEqual(user.name, "Grace Hopper")


class CreateInitialAdminCommand(TestCase):
    def test_creates_once(self):
        out = StringIO()
        call_command("create_initial_admin", "--password", "secret1", stdout=out)
        call_command("create_initial_admin", "--password", "secret1", stdout=out)
        self.assertEqual(User.objects.filter(role=Role.ADMIN).count(), 1)
        self.assertIn("already exists", out.getvalue())

    def test_short_password_rejected(self):
        with self.assertRaises(CommandError):
            call_command("create_initial_admin", "--password", "123", stdout=StringIO())
