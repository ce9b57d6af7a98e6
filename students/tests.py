from io import StringIO
from unittest import mock

from django.contrib.messages import get_messages
from django.core.exceptions import ValidationError
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.urls import reverse

from accounts.errors import AuthorizationDenied, ConflictError, DependencyFailure, NotFound
from accounts.identity import Actor
from accounts.testing import PortalFixturesMixin
from content.models import Announcement, Target
from content.services import list_visible_announcements
from content.visibility import viewer_for
from notifications.models import AdminNotification
from students import services
from students.models import SchoolClass, Student


def link_fields(index_no="S-100", grade="Form II", school_class=None):
    return {
        "index_no": index_no,
        "first_name": "Baraka",
        "last_name": "Mwangi",
        "grade": grade,
        "school_class": school_class,
    }


class GuardianLinkSubmission(PortalFixturesMixin, TestCase):
    """Parent self-service links start unapproved and notify admins."""

    def setUp(self):
        self.parent = self.make_parent(approved=False)

    def test_submission_is_pending_and_notifies(self):
        student = services.submit_guardian_link(self.parent, link_fields())
        self.assertFalse(student.is_approved)
        self.assertEqual(student.parent, self.parent)
        note = AdminNotification.objects.get()
        self.assertEqual(note.type, AdminNotification.STUDENT_ADDED)
        self.assertEqual(note.related_student, student)
        self.assertEqual(note.related_user, self.parent)
        self.assertFalse(note.is_read)

    def test_index_unique_across_parents(self):
        services.submit_guardian_link(self.parent, link_fields("S-1"))
        other = self.make_parent("other@example.com")
        with self.assertRaises(ConflictError):
            services.submit_guardian_link(other, link_fields("S-1"))
        self.assertEqual(Student.objects.filter(index_no="S-1").count(), 1)

    def test_missing_fields(self):
        fields = link_fields()
        fields["first_name"] = "  "
        with self.assertRaisesMessage(ValidationError, "All fields are required"):
            services.submit_guardian_link(self.parent, fields)

    def test_invalid_grade(self):
        with self.assertRaisesMessage(ValidationError, "Invalid grade"):
            services.submit_guardian_link(self.parent, link_fields(grade="Form 2"))

    def test_class_must_match_grade(self):
        klass = self.make_class("Form III", "A")
        with self.assertRaises(ValidationError):
            services.submit_guardian_link(
                self.parent, link_fields(grade="Form II", school_class=klass)
            )

    def test_only_parents_submit(self):
        with self.assertRaises(AuthorizationDenied):
            services.submit_guardian_link(self.make_teacher(), link_fields())


class GuardianLinkDecisions(PortalFixturesMixin, TestCase):
    def setUp(self):
        self.admin = self.make_admin()
        self.parent = self.make_parent()
        self.student = services.submit_guardian_link(self.parent, link_fields("S-7"))

    def test_approve_sets_fields_and_clears_unread(self):
        services.decide_guardian_link(self.admin, self.student.pk, services.APPROVE, "ok")
        self.student.refresh_from_db()
        self.assertTrue(self.student.is_approved)
        self.assertEqual(self.student.approved_by, self.admin)
        self.assertIsNotNone(self.student.approved_at)
        self.assertEqual(self.student.approval_notes, "ok")
        self.assertFalse(AdminNotification.objects.filter(is_read=False).exists())

    def test_approve_twice_keeps_first_approval(self):
        services.decide_guardian_link(self.admin, self.student.pk, services.APPROVE)
        first = Student.objects.get(pk=self.student.pk).approved_at
        other_admin = self.make_admin("admin2@example.com")
        services.decide_guardian_link(other_admin, self.student.pk, services.APPROVE)
        self.student.refresh_from_db()
        self.assertEqual(self.student.approved_at, first)
        self.assertEqual(self.student.approved_by, self.admin)

    def test_reject_with_reason(self):
        services.decide_guardian_link(
            self.admin, self.student.pk, services.REJECT, "Not your child"
        )
        self.assertFalse(Student.objects.filter(pk=self.student.pk).exists())
        note = AdminNotification.objects.get()
        self.assertEqual(note.type, AdminNotification.STUDENT_REJECTED)
        self.assertIn("Not your child", note.message)
        self.assertEqual(note.related_user, self.parent)

    @override_settings(REJECTION_DEFAULT_REASON="No reason provided")
    def test_reject_default_reason(self):
        services.decide_guardian_link(self.admin, self.student.pk, services.REJECT)
        note = AdminNotification.objects.get()
        self.assertIn("No reason provided", note.message)

    def test_reject_approved_link_conflicts(self):
        services.decide_guardian_link(self.admin, self.student.pk, services.APPROVE)
        with self.assertRaises(ConflictError):
            services.decide_guardian_link(self.admin, self.student.pk, services.REJECT)
        self.assertTrue(Student.objects.filter(pk=self.student.pk).exists())

    def test_decision_on_missing_link(self):
        with self.assertRaises(NotFound):
            services.decide_guardian_link(self.admin, 999999, services.APPROVE)

    def test_non_admin_cannot_decide(self):
        with self.assertRaises(AuthorizationDenied):
            services.decide_guardian_link(self.parent, self.student.pk, services.APPROVE)


class GuardianLinkOwnership(PortalFixturesMixin, TestCase):
    def setUp(self):
        self.owner = self.make_parent("owner@example.com")
        self.other = self.make_parent("other@example.com")
        self.student = self.make_child(self.owner, "S-9")

    def test_other_parent_denied(self):
        with self.assertRaises(AuthorizationDenied):
            services.update_guardian_link(
                Actor.from_user(self.other), self.student.pk, link_fields("S-9")
            )

    def test_missing_link_not_found(self):
        with self.assertRaises(NotFound):
            services.get_owned_link(Actor.from_user(self.owner), 999999)

    def test_owner_rename_keeps_approval(self):
        fields = link_fields("S-9", "Form II")
        fields["first_name"] = "Renamed"
        services.update_guardian_link(Actor.from_user(self.owner), self.student.pk, fields)
        self.student.refresh_from_db()
        self.assertEqual(self.student.first_name, "Renamed")
        self.assertTrue(self.student.is_approved)

    def test_owner_grade_change_goes_back_for_review(self):
        admin = self.make_admin()
        form4_post = Announcement.objects.create(
            title="Form IV only",
            content="Body",
            author=admin,
            target=Target.GRADE,
            target_grade="Form IV",
        )
        actor = Actor.from_user(self.owner)

        def feed():
            return [p.title for p in list_visible_announcements(viewer_for(actor))]

        self.assertNotIn("Form IV only", feed())
        services.update_guardian_link(actor, self.student.pk, link_fields("S-9", "Form IV"))
        self.student.refresh_from_db()
        self.assertFalse(self.student.is_approved)
        self.assertIsNone(self.student.approved_by)
        self.assertIsNone(self.student.approved_at)
        self.assertNotIn("Form IV only", feed())
        note = AdminNotification.objects.get(related_student=self.student)
        self.assertFalse(note.is_read)

        services.decide_guardian_link(admin, self.student.pk, services.APPROVE)
        self.assertIn(form4_post.title, feed())

    def test_admin_grade_change_keeps_approval(self):
        admin = self.make_admin()
        services.update_guardian_link(
            Actor.from_user(admin), self.student.pk, link_fields("S-9", "Form III")
        )
        self.student.refresh_from_db()
        self.assertTrue(self.student.is_approved)
        self.assertFalse(AdminNotification.objects.exists())

    def test_update_to_taken_index_conflicts(self):
        self.make_child(self.other, "S-10")
        with self.assertRaises(ConflictError):
            services.update_guardian_link(
                Actor.from_user(self.owner), self.student.pk, link_fields("S-10")
            )

    def test_edit_view_cross_parent_is_403(self):
        self.client.force_login(self.other)
        resp = self.client.get(reverse("students:edit_child", args=[self.student.pk]))
        self.assertEqual(resp.status_code, 403)

    def test_edit_view_missing_is_404(self):
        self.client.force_login(self.owner)
        resp = self.client.get(reverse("students:edit_child", args=[999999]))
        self.assertEqual(resp.status_code, 404)

    def test_delete_own_child(self):
        self.client.force_login(self.owner)
        resp = self.client.post(reverse("students:delete_child", args=[self.student.pk]))
        self.assertRedirects(resp, reverse("students:my_children"), fetch_redirect_response=False)
        self.assertFalse(Student.objects.filter(pk=self.student.pk).exists())


class StudentViews(PortalFixturesMixin, TestCase):
    def test_pending_parent_can_add_children(self):
        parent = self.make_parent(approved=False)
        self.client.force_login(parent)
        resp = self.client.post(
            reverse("students:add_my_children"),
            {"index_no": "S-55", "first_name": "Neema", "last_name": "Ali", "grade": "Form I"},
        )
        self.assertRedirects(
            resp, reverse("students:add_my_children"), fetch_redirect_response=False
        )
        self.assertFalse(Student.objects.get(index_no="S-55").is_approved)

    def test_duplicate_index_rerenders_form(self):
        self.make_child(self.make_parent("a@example.com"), "S-56")
        parent = self.make_parent(approved=False)
        self.client.force_login(parent)
        resp = self.client.post(
            reverse("students:add_my_children"),
            {"index_no": "S-56", "first_name": "Neema", "last_name": "Ali", "grade": "Form I"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertIn("index_no", resp.context["form"].errors)

    def test_approved_parent_cannot_use_pending_form(self):
        self.client.force_login(self.make_parent())
        resp = self.client.get(reverse("students:add_my_children"))
        self.assertEqual(resp.status_code, 403)

    def test_roster_admin_only(self):
        self.client.force_login(self.make_teacher())
        self.assertEqual(self.client.get(reverse("students:list")).status_code, 403)

    def test_admin_reject_via_view(self):
        admin = self.make_admin()
        student = self.make_child(self.make_parent(), "S-60", approved=False)
        self.client.force_login(admin)
        self.client.post(reverse("students:reject", args=[student.pk]), {"notes": "Wrong school"})
        self.assertFalse(Student.objects.filter(pk=student.pk).exists())
        self.assertIn("Wrong school", AdminNotification.objects.get().message)

    def test_admin_create_is_approved(self):
        admin = self.make_admin()
        parent = self.make_parent()
        self.client.force_login(admin)
        self.client.post(
            reverse("students:create"),
            {
                "index_no": "S-61",
                "first_name": "Neema",
                "last_name": "Ali",
                "grade": "Form IV",
                "parent": parent.pk,
            },
        )
        student = Student.objects.get(index_no="S-61")
        self.assertTrue(student.is_approved)
        self.assertEqual(student.approved_by, admin)

    def test_admin_edits_pending_parents_child(self):
        admin = self.make_admin()
        parent = self.make_parent("pending@example.com", approved=False)
        student = self.make_child(parent, "S-62", approved=False)
        self.client.force_login(admin)
        resp = self.client.post(
            reverse("students:edit", args=[student.pk]),
            {
                "index_no": "S-62",
                "first_name": "Corrected",
                "last_name": "Juma",
                "grade": "Form II",
                "parent": parent.pk,
            },
        )
        self.assertRedirects(resp, reverse("students:list"), fetch_redirect_response=False)
        student.refresh_from_db()
        self.assertEqual(student.first_name, "Corrected")
        self.assertEqual(student.parent, parent)

    def test_admin_edit_still_rejects_other_pending_parents(self):
        admin = self.make_admin()
        owner = self.make_parent()
        stranger = self.make_parent("pending@example.com", approved=False)
        student = self.make_child(owner, "S-63")
        self.client.force_login(admin)
        resp = self.client.post(
            reverse("students:edit", args=[student.pk]),
            {
                "index_no": "S-63",
                "first_name": "Amina",
                "last_name": "Juma",
                "grade": "Form II",
                "parent": stranger.pk,
            },
        )
        self.assertEqual(resp.status_code, 200)
        self.assertIn("parent", resp.context["form"].errors)

    def test_decision_store_failure_is_reported(self):
        admin = self.make_admin()
        student = self.make_child(self.make_parent(), "S-64", approved=False)
        self.client.force_login(admin)
        for name in ("students:approve", "students:reject"):
            with self.subTest(route=name), mock.patch(
                "students.services.decide_guardian_link", side_effect=DependencyFailure()
            ):
                resp = self.client.post(reverse(name, args=[student.pk]))
                self.assertRedirects(
                    resp, reverse("students:list"), fetch_redirect_response=False
                )
                self.assertIn(
                    DependencyFailure.default_message,
                    [str(m) for m in get_messages(resp.wsgi_request)],
                )
        self.assertFalse(Student.objects.get(pk=student.pk).is_approved)


class ClassesForGradeApi(PortalFixturesMixin, TestCase):
    def setUp(self):
        self.make_class("Form I", "B")
        self.make_class("Form I", "A")
        self.make_class("Form II", "A")

    def url(self, grade):
        return reverse("students:classes_for_grade", args=[grade])

    def test_requires_login(self):
        self.assertEqual(self.client.get(self.url("Form I")).status_code, 401)

    def test_invalid_grade(self):
        self.client.force_login(self.make_parent())
        self.assertEqual(self.client.get(self.url("Form V")).status_code, 400)

    def test_lists_classes_by_section(self):
        self.client.force_login(self.make_parent())
        resp = self.client.get(self.url("Form I"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([c["section"] for c in resp.json()], ["A", "B"])


class SeedClassesCommand(TestCase):
    def test_idempotent(self):
        call_command("seed_classes", stdout=StringIO())
        call_command("seed_classes", stdout=StringIO())
        self.assertEqual(SchoolClass.objects.count(), 8)
