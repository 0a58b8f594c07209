from django.db import models
from django.conf import settings
from django.utils.translation import gettext_lazy as _
import uuid


class ActiveManager(models.Manager):
	def get_queryset(self):
		return super(ActiveManager, self).get_queryset() .filter(is_active=True)


class Notification(models.Model):
    NOTIFICATION_TYPES = (
        ('funding', 'Funding'),
        ('campaign', 'Campaign'),
        ('crowdfund', 'Crowdfund'),
        ('grant', 'Grant'),
        ('escrow', 'Escrow'),
        ('custom', 'Custom'),
    )

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    event_type = models.CharField(max_length=64)
    title = models.CharField(max_length=255)
    message = models.TextField()
    type = models.CharField(max_length=20, choices=NOTIFICATION_TYPES, default='custom')
    payload = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    is_read = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    objects = models.Manager()
    active_objects = ActiveManager()

    class Meta:
        ordering = ['-created_at']
        verbose_name = _('Notification')
        verbose_name_plural = _('Notifications')

    def __str__(self):
        return f"Notification for {self.user}: {self.title}"
