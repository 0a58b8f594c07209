from rest_framework import serializers

from payments.models import Contribution, MilestoneEscrowRecord


class ContributionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Contribution
        fields = [
            'id', 'contributor', 'campaign', 'project', 'amount',
            'settlement_tx_id', 'wallet_address', 'timestamp',
        ]
        read_only_fields = fields


class ContributionCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=20, decimal_places=7)
    settlement_tx_id = serializers.CharField(max_length=128)
    wallet_address = serializers.CharField(max_length=56, required=False, allow_null=True, allow_blank=True)


class MilestoneEscrowRecordSerializer(serializers.ModelSerializer):
    class Meta:
        model = MilestoneEscrowRecord
        fields = [
            'status', 'escrowed_amount', 'lock_tx_hash', 'escrow_reference', 'release_tx_hash',
            'dispute_reason', 'locked_at', 'approved_at', 'rejected_at',
            'disputed_at', 'released_at',
        ]
        read_only_fields = fields


class EscrowLockSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=20, decimal_places=7)
    settlement_tx_id = serializers.CharField(max_length=128)
    milestone_index = serializers.IntegerField(required=False, allow_null=True, min_value=0)
