from django.db import models


class Conversation(models.Model):
    """
    One thread per unordered pair of accounts. The pair is stored
    normalized so that ``user1_id < user2_id``.
    """

    user1 = models.ForeignKey(
        "accounts.User", on_delete=models.CASCADE, related_name="+"
    )
    user2 = models.ForeignKey(
        "accounts.User", on_delete=models.CASCADE, related_name="+"
    )
    last_message_at = models.DateTimeField(auto_now_add=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-last_message_at", "-id"]
        constraints = [
            models.UniqueConstraint(
                fields=["user1", "user2"], name="unique_conversation_pair"
            ),
        ]

    def other(self, user_id):
        return self.user2 if self.user1_id == user_id else self.user1


class DirectMessage(models.Model):
    sender = models.ForeignKey(
        "accounts.User", on_delete=models.CASCADE, related_name="sent_messages"
    )
    receiver = models.ForeignKey(
        "accounts.User", on_delete=models.CASCADE, related_name="received_messages"
    )
    subject = models.CharField(max_length=200)
    message = models.TextField()
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]
        indexes = [models.Index(fields=["receiver", "is_read"], name="dm_receiver_unread_idx")]

    def __str__(self):
        return self.subject
