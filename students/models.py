from django.db import models
from django.conf import settings

GRADE_CHOICES = [
    ("Form I", "Form I"),
    ("Form II", "Form II"),
    ("Form III", "Form III"),
    ("Form IV", "Form IV"),
]
VALID_GRADES = {g for g, _ in GRADE_CHOICES}


class SchoolClass(models.Model):
    name = models.CharField(max_length=64)
    grade = models.CharField(max_length=16, choices=GRADE_CHOICES)
    section = models.CharField(max_length=16, blank=True)

    class Meta:
        ordering = ["grade", "name"]
        unique_together = [("grade", "section")]

    def __str__(self):
        return self.name


class StudentQuerySet(models.QuerySet):
    def approved(self):
        return self.filter(is_approved=True)

    def pending(self):
        return self.filter(is_approved=False)


class Student(models.Model):
    """Guardian link: a child attached to exactly one parent account."""

    index_no = models.CharField(max_length=32, unique=True)
    first_name = models.CharField(max_length=64)
    last_name = models.CharField(max_length=64)
    grade = models.CharField(max_length=16, choices=GRADE_CHOICES)
    parent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="children",
    )
    school_class = models.ForeignKey(
        SchoolClass,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="students",
    )
    is_approved = models.BooleanField(default=False, db_index=True)
    approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="approved_students",
    )
    approved_at = models.DateTimeField(blank=True, null=True)
    approval_notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StudentQuerySet.as_manager()

    class Meta:
        ordering = ["grade", "first_name", "last_name"]

    def __str__(self):
        return f"{self.first_name} {self.last_name} ({self.index_no})"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()
