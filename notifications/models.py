from django.db import models


class AdminNotification(models.Model):
    STUDENT_ADDED = "student_added"
    STUDENT_REJECTED = "student_rejected"
    TYPE_CHOICES = [
        (STUDENT_ADDED, "Student added"),
        (STUDENT_REJECTED, "Student rejected"),
    ]

    type = models.CharField(max_length=50, choices=TYPE_CHOICES, db_index=True)
    title = models.CharField(max_length=200)
    message = models.TextField()
    related_user = models.ForeignKey(
        "accounts.User",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="admin_notifications",
    )
    related_student = models.ForeignKey(
        "students.Student",
        null=True,
        blank=True,
        on_delete=models.CASCADE,
        related_name="admin_notifications",
    )
    is_read = models.BooleanField(default=False, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["is_read", "-created_at", "-id"]

    def __str__(self):
        return self.title
