from django.db import models
from django.conf import settings


class AuditLog(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True)

    action_type = models.CharField(
        max_length=100)

    target_type = models.CharField(
        max_length=100)

    target_id = models.CharField(
        max_length=255)
    description = models.TextField()
    timestamp = models.DateTimeField(
        auto_now_add=True)

    class Meta:
        ordering = ('-timestamp',)

    def __str__(self):
        return f"Action: {self.action_type} on {self.target_type} ID {self.target_id} by {self.user}"
