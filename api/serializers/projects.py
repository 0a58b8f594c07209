from rest_framework import serializers
from django.contrib.auth import get_user_model

from core.models import Project, CrowdfundThreshold, Vote
from api.serializers.users import UserSummarySerializer

User = get_user_model()


class CrowdfundThresholdSerializer(serializers.ModelSerializer):
    net_votes = serializers.IntegerField(read_only=True)
    is_voting_active = serializers.BooleanField(read_only=True)
    vote_progress = serializers.DecimalField(max_digits=6, decimal_places=2, read_only=True)

    class Meta:
        model = CrowdfundThreshold
        fields = [
            'threshold_votes', 'vote_deadline', 'total_votes', 'upvotes', 'downvotes',
            'net_votes', 'vote_progress', 'is_voting_active', 'status',
            'threshold_met_at', 'expired_at',
        ]
        read_only_fields = fields


class ProjectSerializer(serializers.ModelSerializer):
    owner = UserSummarySerializer(read_only=True)
    crowdfund = CrowdfundThresholdSerializer(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = Project
        fields = [
            'id', 'owner', 'title', 'description', 'status', 'status_display',
            'funding_goal', 'funds_raised', 'funding_end_date', 'crowdfund',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields


class ProjectCreateSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    threshold_votes = serializers.IntegerField(required=False, min_value=1, max_value=10000)
    vote_deadline = serializers.DateTimeField(required=False, allow_null=True)
    team_members = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(is_active=True), many=True, required=False
    )


class ProjectFundingSerializer(serializers.Serializer):
    funding_goal = serializers.DecimalField(max_digits=20, decimal_places=7)
    funding_end_date = serializers.DateTimeField()


class VoteSerializer(serializers.ModelSerializer):
    class Meta:
        model = Vote
        fields = ['id', 'project', 'voter', 'value', 'created_at', 'updated_at']
        read_only_fields = fields
