from django.db import models


class ContactMessage(models.Model):
    STATUS_CHOICES = [("unread", "Unread"), ("read", "Read"), ("replied", "Replied")]
    name = models.CharField(max_length=150)
    email = models.EmailField()
    subject = models.CharField(max_length=200)
    message = models.TextField()
    status = models.CharField(
        max_length=16, choices=STATUS_CHOICES, default="unread", db_index=True
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.subject} <{self.email}>"
