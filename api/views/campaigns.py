import logging

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import permissions, status
from rest_framework.filters import OrderingFilter
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from core.models import Campaign
from core.services.campaign_service import CampaignService
from core.utils.helper import get_object_or_not_found
from payments.services.funding_ledger import FundingLedger
from api.permissions.roles import IsCreator, IsPlatformAdmin
from api.serializers.campaigns import CampaignCreateSerializer, CampaignRejectSerializer, CampaignSerializer
from api.serializers.payments import ContributionCreateSerializer, ContributionSerializer

logger = logging.getLogger(__name__)


def campaign_service():
    return CampaignService()


class CampaignListCreateAPIView(GenericAPIView):
    queryset = Campaign.objects.select_related('creator', 'approved_by').prefetch_related('milestones')
    serializer_class = CampaignSerializer
    permission_classes = [permissions.IsAuthenticated, IsCreator]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_fields = ['status', 'project', 'creator']
    ordering_fields = ['created_at', 'deadline', 'funds_raised']
    ordering = ['-created_at']

    def get(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(queryset, many=True).data, status=status.HTTP_200_OK)

    def post(self, request, *args, **kwargs):
        data = CampaignCreateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        payload = data.validated_data
        campaign = campaign_service().create_campaign(
            payload['project'],
            request.user,
            payload['goal_amount'],
            payload['deadline'],
            payload['milestones'],
            whitepaper_url=payload.get('whitepaper_url'),
            pitch_deck_url=payload.get('pitch_deck_url'),
        )
        return Response(CampaignSerializer(campaign).data, status=status.HTTP_201_CREATED)


class CampaignDetailAPIView(GenericAPIView):
    queryset = Campaign.objects.select_related('creator', 'approved_by').prefetch_related('milestones')
    serializer_class = CampaignSerializer
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk, *args, **kwargs):
        campaign = get_object_or_not_found(self.get_queryset(), "Campaign not found.", pk=pk)
        return Response(self.get_serializer(campaign).data, status=status.HTTP_200_OK)


class CampaignApproveAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        # Role is checked by the service so the failure order stays fixed.
        campaign = campaign_service().approve(pk, request.user)
        return Response(
            {'message': 'Campaign approved and now live', 'campaign': CampaignSerializer(campaign).data},
            status=status.HTTP_200_OK,
        )


class CampaignRejectAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated, IsPlatformAdmin]

    def patch(self, request, pk):
        data = CampaignRejectSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        campaign = campaign_service().reject(pk, request.user, data.validated_data['reason'])
        return Response(
            {'message': 'Campaign rejected', 'campaign': CampaignSerializer(campaign).data},
            status=status.HTTP_200_OK,
        )


class CampaignBackAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request, pk):
        campaign = get_object_or_not_found(
            Campaign.objects.select_related('project'), "Campaign not found.", pk=pk
        )
        data = ContributionCreateSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        contribution = FundingLedger().contribute(
            campaign,
            request.user,
            data.validated_data['amount'],
            data.validated_data['settlement_tx_id'],
            wallet_address=data.validated_data.get('wallet_address'),
        )
        return Response(
            {
                'contribution': ContributionSerializer(contribution).data,
                'campaign': {
                    'id': str(campaign.pk),
                    'funds_raised': str(campaign.funds_raised),
                    'goal_amount': str(campaign.goal_amount),
                    'status': campaign.status,
                },
            },
            status=status.HTTP_201_CREATED,
        )
