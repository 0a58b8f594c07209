import uuid

from django.utils import timezone

from payments.models import AuditLog


class PaymentAuditService:
    @staticmethod
    def audit(user, action_type, amount=None, target_type='payment', target_id=None, description=None):
        if description is None:
            description = f'{action_type} of {amount}' if amount is not None else action_type
        return AuditLog.objects.create(
            user=user,
            action_type=action_type,
            target_type=target_type,
            target_id=str(target_id or uuid.uuid4()),
            description=description,
            timestamp=timezone.now()
        )
