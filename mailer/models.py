from django.db import models


class EmailLog(models.Model):
    user = models.ForeignKey("accounts.User", on_delete=models.CASCADE)
    subject = models.CharField(max_length=200)
    message = models.TextField()
    is_sent = models.BooleanField(default=False)
    sent_at = models.DateTimeField(blank=True, null=True)
    provider_id = models.CharField(max_length=128, blank=True, null=True)
    error = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
