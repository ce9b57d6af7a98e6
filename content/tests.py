from itertools import product

from django.test import TestCase, override_settings
from django.urls import reverse

from accounts.identity import Actor, ActorKind
from accounts.testing import PortalFixturesMixin
from content import services
from content.models import Announcement, Comment, Reaction, Target, Visibility
from content.visibility import Viewer, is_visible, viewer_for
from notifications.models import AdminNotification


class AnnouncementMixin(PortalFixturesMixin):
    def make_post(self, author, title="Notice", **kwargs):
        return Announcement.objects.create(
            title=title, content=kwargs.pop("content", "Body"), author=author, **kwargs
        )


class VisibilityPredicate(AnnouncementMixin, TestCase):
    """The per-record predicate and the listing filter agree on every case."""

    def setUp(self):
        self.admin = self.make_admin()
        self.form2a = self.make_class("Form II", "A")
        self.form3a = self.make_class("Form III", "A")
        self.posts = []
        for visibility, target in product(Visibility.values, Target.values):
            extra = {}
            if target == Target.GRADE:
                extra["target_grade"] = "Form II"
            elif target == Target.CLASS:
                extra["target_class"] = self.form3a
            self.posts.append(
                self.make_post(
                    self.admin,
                    title=f"{visibility}/{target}",
                    visibility=visibility,
                    target=target,
                    **extra,
                )
            )

    def visible_titles(self, viewer):
        return {p.title for p in services.list_visible_announcements(viewer)}

    def predicate_titles(self, viewer):
        return {p.title for p in self.posts if is_visible(viewer, p)}

    def viewers(self):
        return [
            Viewer(ActorKind.ANONYMOUS),
            Viewer(ActorKind.ADMIN),
            Viewer(ActorKind.TEACHER),
            Viewer(ActorKind.PARENT),
            Viewer(ActorKind.PARENT, frozenset({"Form II"}), frozenset()),
            Viewer(ActorKind.PARENT, frozenset({"Form III"}), frozenset({self.form3a.pk})),
        ]

    def test_listing_matches_predicate(self):
        for viewer in self.viewers():
            with self.subTest(viewer=viewer):
                self.assertEqual(self.visible_titles(viewer), self.predicate_titles(viewer))

    def test_predicate_is_deterministic(self):
        for viewer in self.viewers():
            for post in self.posts:
                self.assertEqual(is_visible(viewer, post), is_visible(viewer, post))

    def test_anonymous_sees_only_public_untargeted(self):
        self.assertEqual(self.visible_titles(Viewer(ActorKind.ANONYMOUS)), {"all/all"})

    def test_admin_sees_everything(self):
        self.assertEqual(len(self.visible_titles(Viewer(ActorKind.ADMIN))), 9)

    def test_teacher_sees_all_audiences(self):
        self.assertEqual(
            self.visible_titles(Viewer(ActorKind.TEACHER)),
            {f"{v}/{t}" for v in ("all", "teachers") for t in Target.values},
        )

    def test_parent_without_children_degrades_to_all_target(self):
        self.assertEqual(
            self.visible_titles(Viewer(ActorKind.PARENT)), {"all/all", "parents/all"}
        )

    def test_grade_match_is_exact(self):
        viewer = Viewer(ActorKind.PARENT, frozenset({"Form I"}), frozenset())
        # "Form I" is a prefix of "Form II" but must not match it
        self.assertEqual(self.visible_titles(viewer), {"all/all", "parents/all"})

    def test_parent_class_match(self):
        viewer = Viewer(ActorKind.PARENT, frozenset({"Form III"}), frozenset({self.form3a.pk}))
        self.assertEqual(
            self.visible_titles(viewer),
            {"all/all", "parents/all", "all/class", "parents/class"},
        )


class ParentAudience(AnnouncementMixin, TestCase):
    def setUp(self):
        self.admin = self.make_admin()
        self.parent = self.make_parent()
        self.klass = self.make_class("Form II", "A")
        self.grade_post = self.make_post(
            self.admin, "grade", target=Target.GRADE, target_grade="Form II"
        )
        self.class_post = self.make_post(
            self.admin, "class", target=Target.CLASS, target_class=self.klass
        )

    def test_unapproved_child_is_ignored(self):
        self.make_child(self.parent, "S-1", "Form II", self.klass, approved=False)
        viewer = viewer_for(Actor.from_user(self.parent))
        self.assertEqual(viewer.grades, frozenset())
        self.assertFalse(is_visible(viewer, self.grade_post))
        self.assertFalse(is_visible(viewer, self.class_post))

    def test_approved_child_opens_grade_and_class(self):
        self.make_child(self.parent, "S-1", "Form II", self.klass, approved=True)
        viewer = viewer_for(Actor.from_user(self.parent))
        self.assertTrue(is_visible(viewer, self.grade_post))
        self.assertTrue(is_visible(viewer, self.class_post))

    def test_non_parents_have_no_audience_sets(self):
        viewer = viewer_for(Actor.from_user(self.admin))
        self.assertEqual(viewer, Viewer(ActorKind.ADMIN))


class FeedOrdering(AnnouncementMixin, TestCase):
    def setUp(self):
        self.admin = self.make_admin()

    def test_pinned_first_then_newest(self):
        old_pinned = self.make_post(self.admin, "old pinned", is_pinned=True)
        self.make_post(self.admin, "older")
        newest = self.make_post(self.admin, "newest")
        titles = [p.title for p in services.list_visible_announcements(Viewer(ActorKind.ADMIN))]
        self.assertEqual(titles[0], old_pinned.title)
        self.assertEqual(titles[1], newest.title)

    def test_category_and_search_narrow(self):
        self.make_post(self.admin, "Sports day", category="events")
        self.make_post(self.admin, "Fees due", category="finance", content="Pay by Friday")
        viewer = Viewer(ActorKind.ANONYMOUS)
        self.assertEqual(
            [p.title for p in services.list_visible_announcements(viewer, category="events")],
            ["Sports day"],
        )
        self.assertEqual(
            [p.title for p in services.list_visible_announcements(viewer, search="FRIDAY")],
            ["Fees due"],
        )

    @override_settings(HOME_FEED_LIMIT=2)
    def test_home_feed_limit(self):
        for i in range(3):
            self.make_post(self.admin, f"post {i}")
        resp = self.client.get(reverse("content:home"))
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(len(resp.context["posts"]), 2)

    def test_counts_annotated(self):
        post = self.make_post(self.admin)
        Comment.objects.create(announcement=post, author=self.admin, content="hi")
        services.react(Actor.from_user(self.admin), post.pk, "like")
        row = services.list_visible_announcements(Viewer(ActorKind.ADMIN)).get(pk=post.pk)
        self.assertEqual((row.comment_count, row.like_count, row.dislike_count), (1, 1, 0))


class ReactionToggle(AnnouncementMixin, TestCase):
    def setUp(self):
        self.admin = self.make_admin()
        self.post = self.make_post(self.admin)
        self.actor = Actor.from_user(self.make_parent())

    def test_double_like_removes_reaction(self):
        first = services.react(self.actor, self.post.pk, "like")
        self.assertEqual(first, {"likes": 1, "dislikes": 0, "self_reaction": "like"})
        second = services.react(self.actor, self.post.pk, "like")
        self.assertEqual(second, {"likes": 0, "dislikes": 0, "self_reaction": None})
        self.assertFalse(Reaction.objects.exists())

    def test_switching_kind_updates(self):
        services.react(self.actor, self.post.pk, "like")
        result = services.react(self.actor, self.post.pk, "dislike")
        self.assertEqual(result, {"likes": 0, "dislikes": 1, "self_reaction": "dislike"})
        self.assertEqual(Reaction.objects.count(), 1)

    def test_api_react(self):
        self.client.force_login(self.make_teacher())
        resp = self.client.post(
            reverse("content:react", args=[self.post.pk]), {"reaction_type": "like"}
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["likes"], 1)

    def test_api_invalid_kind(self):
        self.client.force_login(self.make_teacher())
        resp = self.client.post(
            reverse("content:react", args=[self.post.pk]), {"reaction_type": "love"}
        )
        self.assertEqual(resp.status_code, 400)

    def test_api_requires_login(self):
        resp = self.client.post(
            reverse("content:react", args=[self.post.pk]), {"reaction_type": "like"}
        )
        self.assertEqual(resp.status_code, 401)

    def test_api_hidden_post_forbidden(self):
        hidden = self.make_post(self.admin, visibility=Visibility.TEACHERS)
        self.client.force_login(self.make_parent("p2@example.com"))
        resp = self.client.post(
            reverse("content:react", args=[hidden.pk]), {"reaction_type": "like"}
        )
        self.assertEqual(resp.status_code, 403)

    def test_reaction_details_admin_only(self):
        services.react(self.actor, self.post.pk, "dislike")
        url = reverse("content:reaction_details", args=[self.post.pk])
        self.client.force_login(self.make_teacher())
        self.assertEqual(self.client.get(url).status_code, 403)
        self.client.force_login(self.admin)
        data = self.client.get(url).json()
        self.assertEqual(data["total_dislikes"], 1)
        self.assertEqual(data["dislikes"][0]["user_id"], self.actor.user_id)


class PostViews(AnnouncementMixin, TestCase):
    def setUp(self):
        self.admin = self.make_admin()

    def test_detail_hidden_from_anonymous(self):
        post = self.make_post(self.admin, visibility=Visibility.PARENTS)
        self.assertEqual(self.client.get(post.get_absolute_url()).status_code, 403)

    def test_detail_missing(self):
        self.assertEqual(self.client.get(reverse("content:detail", args=[999999])).status_code, 404)

    def test_teacher_cannot_open_parent_post(self):
        post = self.make_post(self.admin, visibility=Visibility.PARENTS)
        self.client.force_login(self.make_teacher())
        self.assertEqual(self.client.get(post.get_absolute_url()).status_code, 403)

    def test_admin_creates_post_with_default_category(self):
        self.client.force_login(self.admin)
        resp = self.client.post(
            reverse("content:create"),
            {"title": "Exams", "content": "Next week", "visibility": "all", "target": "all"},
        )
        post = Announcement.objects.get(title="Exams")
        self.assertRedirects(resp, post.get_absolute_url(), fetch_redirect_response=False)
        self.assertEqual(post.category, "general")
        self.assertEqual(post.author, self.admin)

    def test_grade_target_requires_grade(self):
        self.client.force_login(self.admin)
        resp = self.client.post(
            reverse("content:create"),
            {"title": "Exams", "content": "Next week", "visibility": "all", "target": "grade"},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertFalse(Announcement.objects.exists())

    def test_teacher_cannot_create(self):
        self.client.force_login(self.make_teacher())
        self.assertEqual(self.client.get(reverse("content:create")).status_code, 403)

    def test_admin_delete(self):
        post = self.make_post(self.admin)
        self.client.force_login(self.admin)
        self.client.post(reverse("content:delete", args=[post.pk]))
        self.assertFalse(Announcement.objects.exists())


class Comments(AnnouncementMixin, TestCase):
    def setUp(self):
        self.admin = self.make_admin()
        self.post = self.make_post(self.admin)
        self.author = self.make_parent("author@example.com")
        self.other = self.make_parent("other@example.com")

    def test_add_comment_and_reply(self):
        self.client.force_login(self.author)
        self.client.post(reverse("content:comment_add", args=[self.post.pk]), {"content": "Hi"})
        top = Comment.objects.get()
        self.client.post(
            reverse("content:comment_add", args=[self.post.pk]),
            {"content": "Reply", "parent_id": top.pk},
        )
        reply = Comment.objects.get(content="Reply")
        self.assertEqual(reply.parent, top)

    def test_reply_to_reply_attaches_to_top_level(self):
        top = services.add_comment(self.author, self.post, "top")
        reply = services.add_comment(self.other, self.post, "reply", top.pk)
        nested = services.add_comment(self.author, self.post, "nested", reply.pk)
        self.assertEqual(nested.parent, top)

    def test_blank_comment_rejected(self):
        self.client.force_login(self.author)
        self.client.post(reverse("content:comment_add", args=[self.post.pk]), {"content": "  "})
        self.assertFalse(Comment.objects.exists())

    def test_reply_parent_must_be_on_same_post(self):
        elsewhere = services.add_comment(self.author, self.make_post(self.admin, "other"), "x")
        self.client.force_login(self.author)
        resp = self.client.post(
            reverse("content:comment_add", args=[self.post.pk]),
            {"content": "Reply", "parent_id": elsewhere.pk},
        )
        self.assertEqual(resp.status_code, 404)

    def test_only_author_or_admin_edits(self):
        comment = services.add_comment(self.author, self.post, "mine")
        url = reverse("content:comment_edit", args=[comment.pk])

        self.client.force_login(self.other)
        self.assertEqual(self.client.post(url, {"content": "hijack"}).status_code, 403)

        self.client.force_login(self.author)
        self.client.post(url, {"content": "edited"})
        comment.refresh_from_db()
        self.assertEqual(comment.content, "edited")

        self.client.force_login(self.admin)
        self.client.post(url, {"content": "moderated"})
        comment.refresh_from_db()
        self.assertEqual(comment.content, "moderated")

    def test_delete_missing_comment(self):
        self.client.force_login(self.author)
        resp = self.client.post(reverse("content:comment_delete", args=[999999]))
        self.assertEqual(resp.status_code, 404)

    def test_other_cannot_delete(self):
        comment = services.add_comment(self.author, self.post, "mine")
        self.client.force_login(self.other)
        resp = self.client.post(reverse("content:comment_delete", args=[comment.pk]))
        self.assertEqual(resp.status_code, 403)
        self.assertTrue(Comment.objects.filter(pk=comment.pk).exists())

    def test_cannot_comment_on_hidden_post(self):
        hidden = self.make_post(self.admin, visibility=Visibility.TEACHERS)
        self.client.force_login(self.author)
        resp = self.client.post(reverse("content:comment_add", args=[hidden.pk]), {"content": "x"})
        self.assertEqual(resp.status_code, 403)


class ApprovalToVisibilityFlow(AnnouncementMixin, TestCase):
    """A pending parent adds a child, both get approved, the grade post opens up."""

    def test_end_to_end(self):
        admin = self.make_admin()
        klass = self.make_class("Form I", "A")
        grade_post = self.make_post(
            admin, "Form I trip", target=Target.GRADE, target_grade="Form I"
        )
        parent = self.make_parent("new@example.com", approved=False)

        # pending parents are denied admin pages and parked on the notice elsewhere
        self.client.force_login(parent)
        self.assertEqual(self.client.get(reverse("students:list")).status_code, 403)
        self.assertRedirects(
            self.client.get(reverse("content:home")),
            reverse("accounts:pending_approval"),
            fetch_redirect_response=False,
        )

        self.client.post(
            reverse("students:add_my_children"),
            {
                "index_no": "S-200",
                "first_name": "Neema",
                "last_name": "Ali",
                "grade": "Form I",
                "school_class": klass.pk,
            },
        )
        student = parent.children.get()
        self.assertFalse(student.is_approved)
        note = AdminNotification.objects.get()
        self.assertFalse(note.is_read)
        self.assertFalse(is_visible(viewer_for(Actor.from_user(parent)), grade_post))

        self.client.force_login(admin)
        self.client.post(reverse("students:approve", args=[student.pk]))
        student.refresh_from_db()
        note.refresh_from_db()
        self.assertTrue(student.is_approved)
        self.assertTrue(note.is_read)
        self.assertTrue(is_visible(viewer_for(Actor.from_user(parent)), grade_post))

        self.client.post(reverse("accounts:user_approve", args=[parent.pk]))
        self.client.force_login(parent)
        self.assertEqual(self.client.get(grade_post.get_absolute_url()).status_code, 200)
        feed = self.client.get(reverse("content:home")).context["posts"]
        self.assertIn(grade_post.pk, [p.pk for p in feed])
