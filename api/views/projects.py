import logging

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import permissions, status
from rest_framework.filters import OrderingFilter
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from core.models import Project
from core.services.project_service import ProjectService
from core.services.threshold_tracker import CrowdfundThresholdTracker
from core.utils.helper import get_object_or_not_found
from payments.services.funding_ledger import FundingLedger
from api.serializers.projects import (
    CrowdfundThresholdSerializer,
    ProjectCreateSerializer,
    ProjectFundingSerializer,
    ProjectSerializer,
    VoteSerializer,
)
from api.serializers.payments import ContributionCreateSerializer, ContributionSerializer

logger = logging.getLogger(__name__)


class ProjectListCreateAPIView(GenericAPIView):
    queryset = Project.objects.select_related('owner', 'crowdfund')
    serializer_class = ProjectSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_fields = ['status', 'owner']
    ordering_fields = ['created_at', 'funds_raised']
    ordering = ['-created_at']

    def get(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(queryset, many=True).data, status=status.HTTP_200_OK)

    def post(self, request, *args, **kwargs):
        data = ProjectCreateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        project = ProjectService.create_idea(owner=request.user, **data.validated_data)
        return Response(ProjectSerializer(project).data, status=status.HTTP_201_CREATED)


class ProjectFundingAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        data = ProjectFundingSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        project = ProjectService.open_funding(
            pk, request.user,
            goal=data.validated_data['funding_goal'],
            end_date=data.validated_data['funding_end_date'],
        )
        return Response(ProjectSerializer(project).data, status=status.HTTP_200_OK)


class ProjectVoteAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        value = request.data.get('value')
        # Form posts carry the vote as text; JSON numbers reach the tracker as sent.
        if isinstance(value, str):
            try:
                value = int(value)
            except ValueError:
                pass
        vote, created = CrowdfundThresholdTracker().register_vote(pk, request.user, value)
        threshold = vote.project.crowdfund
        threshold.refresh_from_db()
        return Response(
            {
                'vote': VoteSerializer(vote).data,
                'crowdfund': CrowdfundThresholdSerializer(threshold).data,
            },
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    def delete(self, request, pk):
        threshold = CrowdfundThresholdTracker().remove_vote(pk, request.user)
        return Response(
            {'status': 'vote removed', 'crowdfund': CrowdfundThresholdSerializer(threshold).data},
            status=status.HTTP_200_OK,
        )


class ProjectFundAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        project = get_object_or_not_found(Project.objects.all(), "Project not found", pk=pk)
        data = ContributionCreateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        contribution = FundingLedger().contribute(
            project,
            request.user,
            data.validated_data['amount'],
            data.validated_data['settlement_tx_id'],
            wallet_address=data.validated_data.get('wallet_address'),
        )
        return Response(
            {
                'contribution': ContributionSerializer(contribution).data,
                'project': ProjectSerializer(project).data,
            },
            status=status.HTTP_200_OK,
        )
