from django.db import models
from django.urls import reverse


class Visibility(models.TextChoices):
    ALL = "all", "Everyone"
    TEACHERS = "teachers", "Teachers"
    PARENTS = "parents", "Parents"


class Target(models.TextChoices):
    ALL = "all", "All grades"
    GRADE = "grade", "Grade"
    CLASS = "class", "Class"


class Announcement(models.Model):
    title = models.CharField(max_length=200)
    content = models.TextField()
    category = models.CharField(max_length=64, default="general")
    visibility = models.CharField(
        max_length=16, choices=Visibility.choices, default=Visibility.ALL
    )
    target = models.CharField(
        max_length=16, choices=Target.choices, default=Target.ALL
    )
    target_grade = models.CharField(max_length=16, blank=True)
    target_class = models.ForeignKey(
        "students.SchoolClass",
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="announcements",
    )
    is_pinned = models.BooleanField(default=False)
    author = models.ForeignKey(
        "accounts.User",
        on_delete=models.CASCADE,
        related_name="announcements",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-is_pinned", "-created_at", "-id"]

    def __str__(self):
        return self.title

    def get_absolute_url(self):
        return reverse("content:detail", args=[self.pk])


class Comment(models.Model):
    announcement = models.ForeignKey(
        Announcement, on_delete=models.CASCADE, related_name="comments"
    )
    author = models.ForeignKey(
        "accounts.User", on_delete=models.CASCADE, related_name="comments"
    )
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="replies",
    )
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at", "id"]


class ReactionKind(models.TextChoices):
    LIKE = "like", "Like"
    DISLIKE = "dislike", "Dislike"


class Reaction(models.Model):
    announcement = models.ForeignKey(
        Announcement, on_delete=models.CASCADE, related_name="reactions"
    )
    user = models.ForeignKey(
        "accounts.User", on_delete=models.CASCADE, related_name="reactions"
    )
    kind = models.CharField(max_length=8, choices=ReactionKind.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["announcement", "user"], name="unique_reaction_per_user"
            ),
        ]
