from rest_framework import serializers

from core.models import Campaign, CampaignMilestone
from api.serializers.users import UserSummarySerializer


class CampaignMilestoneSerializer(serializers.ModelSerializer):
    class Meta:
        model = CampaignMilestone
        fields = ['id', 'index', 'escrow_index', 'title', 'description', 'payout_percentage', 'amount']
        read_only_fields = fields


class CampaignSerializer(serializers.ModelSerializer):
    creator = UserSummarySerializer(read_only=True)
    approved_by = UserSummarySerializer(read_only=True)
    milestones = CampaignMilestoneSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Campaign
        fields = [
            'id', 'project', 'creator', 'goal_amount', 'funds_raised', 'currency',
            'deadline', 'status', 'status_display', 'whitepaper_url', 'pitch_deck_url',
            'approved_by', 'approved_at', 'rejected_reason', 'escrow_contract_ref',
            'milestones', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class CampaignCreateSerializer(serializers.Serializer):
    """Shape check only; business rules are enforced by CampaignService."""
    project = serializers.UUIDField()
    goal_amount = serializers.DecimalField(max_digits=20, decimal_places=7)
    deadline = serializers.DateTimeField()
    whitepaper_url = serializers.URLField(required=False, allow_null=True, allow_blank=True)
    pitch_deck_url = serializers.URLField(required=False, allow_null=True, allow_blank=True)
    milestones = serializers.ListField(child=serializers.DictField(), allow_empty=True)


class CampaignRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(allow_blank=True, required=False, default='')
