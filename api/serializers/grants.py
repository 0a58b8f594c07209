from rest_framework import serializers

from grants.models import Grant, GrantMilestone, GrantApplication, ApplicationMilestone
from api.serializers.users import UserSummarySerializer
from api.serializers.payments import MilestoneEscrowRecordSerializer


class GrantMilestoneSerializer(serializers.ModelSerializer):
    class Meta:
        model = GrantMilestone
        fields = ['index', 'title', 'description', 'expected_payout']
        read_only_fields = fields


class GrantSerializer(serializers.ModelSerializer):
    creator = UserSummarySerializer(read_only=True)
    milestones = GrantMilestoneSerializer(many=True, read_only=True)

    class Meta:
        model = Grant
        fields = [
            'id', 'creator', 'title', 'description', 'total_budget', 'rules',
            'status', 'milestones', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ApplicationMilestoneSerializer(serializers.ModelSerializer):
    escrow = MilestoneEscrowRecordSerializer(read_only=True)

    class Meta:
        model = ApplicationMilestone
        fields = ['index', 'title', 'description', 'expected_payout', 'supporting_documents', 'escrow']
        read_only_fields = fields


class GrantApplicationSerializer(serializers.ModelSerializer):
    applicant = UserSummarySerializer(read_only=True)
    milestones = ApplicationMilestoneSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = GrantApplication
        fields = [
            'id', 'grant', 'applicant', 'title', 'summary', 'status', 'status_display',
            'escrowed_amount', 'escrow_reference', 'milestones_completed', 'admin_note',
            'archived', 'reviewed_at', 'milestones', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class GrantStatusSerializer(serializers.Serializer):
    status = serializers.CharField()


class ApplicationReviewSerializer(serializers.Serializer):
    status = serializers.CharField()
    admin_note = serializers.CharField(required=False, allow_blank=True, default='')


class MilestoneActionSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    decision = serializers.CharField(required=False, allow_blank=True, default='')
