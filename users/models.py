from django.db import models
from django.contrib.auth.models import AbstractUser
from django.core.exceptions import ValidationError
from django.utils.translation import gettext_lazy as _
import uuid

from core.utils.helper import is_valid_stellar_address



# User & Roles

class UserType(models.TextChoices):
        BACKER = 'backer', _('Backer')
        CREATOR = 'creator', _('Creator')
        ADMIN = 'admin', _('Platform Admin')

class User(AbstractUser):

    id = models.UUIDField(
        primary_key=True,
        default=uuid.uuid4,
        editable=False
    )

    # User profile fields
    user_type = models.CharField(
        max_length=20,
        choices=UserType.choices,
        default=UserType.BACKER,
        verbose_name=_('User Type')
    )

    wallet_address = models.CharField(
        max_length=56,
        null=True,
        blank=True,
        verbose_name=_('Settlement Wallet Address'),
        help_text=_('Stellar public key (G...) used for payouts')
    )

    last_seen = models.DateTimeField(
        auto_now=True,
        verbose_name=_('Last Seen')
    )

    class Meta:
        verbose_name = _('User')
        verbose_name_plural = _('Users')
        ordering = ['-date_joined']
        indexes = [
            models.Index(fields=['user_type'], name='user_type_idx'),
        ]

    def __str__(self):
        return f"{self.get_full_name() or self.username}"

    def has_role(self, role):
        """
        Opaque capability check used by every service-level authorization gate.
        Superusers and staff always hold the admin capability.
        """
        if not self.is_active:
            return False
        if role == UserType.ADMIN:
            return self.user_type == UserType.ADMIN or self.is_staff or self.is_superuser
        return self.user_type == role

    @property
    def is_platform_admin(self):
        return self.has_role(UserType.ADMIN)

    @property
    def display_name(self):
        return self.get_full_name() or self.username

    def clean(self):
        if self.wallet_address and not is_valid_stellar_address(self.wallet_address):
            raise ValidationError({'wallet_address': _('Invalid Stellar wallet address.')})

    def save(self, *args, **kwargs):
        # Ensure username is set if not provided
        if not self.username:
            self.username = f"user_{uuid.uuid4().hex[:6]}"
        super().save(*args, **kwargs)
