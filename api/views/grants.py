import logging

from django.db.models import Q
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import permissions, status
from rest_framework.filters import OrderingFilter
from rest_framework.generics import GenericAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import Forbidden, InvalidArgument
from core.utils.helper import get_object_or_not_found
from grants.models import Grant, GrantApplication, GrantStatus
from grants.services import GrantApplicationWorkflow, GrantService
from payments.services.escrow_service import MilestoneEscrowController
from users.models import UserType
from api.permissions.roles import IsCreator
from api.serializers.grants import (
    ApplicationReviewSerializer,
    GrantApplicationSerializer,
    GrantSerializer,
    GrantStatusSerializer,
    MilestoneActionSerializer,
)
from api.serializers.payments import EscrowLockSerializer, MilestoneEscrowRecordSerializer

logger = logging.getLogger(__name__)

APPLICATION_QUERYSET = GrantApplication.objects.select_related('applicant').prefetch_related('milestones__escrow')


def escrow_controller():
    return MilestoneEscrowController()


def application_response(application_id, message, status_code=status.HTTP_200_OK):
    application = APPLICATION_QUERYSET.get(pk=application_id)
    return Response(
        {'message': message, 'application': GrantApplicationSerializer(application).data},
        status=status_code,
    )


# Grants

class GrantListCreateAPIView(GenericAPIView):
    queryset = Grant.objects.select_related('creator').prefetch_related('milestones')
    serializer_class = GrantSerializer
    permission_classes = [permissions.IsAuthenticated, IsCreator]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_fields = ['status', 'creator']
    ordering_fields = ['created_at', 'total_budget']
    ordering = ['-created_at']

    def get_queryset(self):
        # Drafts are only visible to their creator.
        user = self.request.user
        if user.has_role(UserType.ADMIN):
            return self.queryset
        return self.queryset.filter(~Q(status=GrantStatus.DRAFT) | Q(creator=user))

    def get(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(self.get_serializer(page, many=True).data)
        return Response(self.get_serializer(queryset, many=True).data, status=status.HTTP_200_OK)

    def post(self, request, *args, **kwargs):
        grant = GrantService.create_grant(request.user, request.data)
        return Response(GrantSerializer(grant).data, status=status.HTTP_201_CREATED)


class GrantStatusAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        data = GrantStatusSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        grant = GrantService.update_grant_status(pk, request.user, data.validated_data['status'])
        return Response(
            {'message': f'Grant is now {grant.status}', 'grant': GrantSerializer(grant).data},
            status=status.HTTP_200_OK,
        )


class GrantApplicationsAPIView(GenericAPIView):
    serializer_class = GrantApplicationSerializer
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['status', 'archived']

    def get_queryset(self):
        return APPLICATION_QUERYSET.filter(grant_id=self.kwargs['pk'])

    def get(self, request, pk, *args, **kwargs):
        grant = get_object_or_not_found(Grant.objects.all(), "Grant not found.", pk=pk)
        if grant.creator_id != request.user.pk and not request.user.has_role(UserType.ADMIN):
            raise Forbidden("Only the grant creator or an admin can list its applications.")
        queryset = self.filter_queryset(self.get_queryset())
        return Response(self.get_serializer(queryset, many=True).data, status=status.HTTP_200_OK)


# Applications

class GrantApplicationSubmitAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        grant_id = request.data.get('grant_id')
        if not grant_id:
            raise InvalidArgument("grant_id is required.")
        application = GrantApplicationWorkflow().submit(grant_id, request.user, request.data)
        return application_response(application.pk, 'Grant application submitted', status.HTTP_201_CREATED)


class ApplicationMilestonesAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        application = GrantApplicationWorkflow().revise_milestones(pk, request.user, request.data.get('milestones'))
        return application_response(application.pk, 'Milestones updated, awaiting final approval')


class ApplicationReviewAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        data = ApplicationReviewSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        application = GrantApplicationWorkflow().review(
            pk, request.user, data.validated_data['status'], data.validated_data['admin_note']
        )
        return application_response(application.pk, f'Application {application.status}')


class ApplicationEscrowAPIView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def patch(self, request, pk):
        data = EscrowLockSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        application = escrow_controller().lock(
            pk,
            data.validated_data['amount'],
            data.validated_data['settlement_tx_id'],
            request.user,
            milestone_index=data.validated_data.get('milestone_index'),
        )
        return application_response(application.pk, 'Funds locked in escrow')


class MilestoneActionAPIView(APIView):
    """approve | reject | dispute | resolve | release one application milestone."""
    permission_classes = [permissions.IsAuthenticated]
    allowed_actions = ('approve', 'reject', 'dispute', 'resolve', 'release')

    def post(self, request, pk, index, action):
        if action not in self.allowed_actions:
            raise InvalidArgument(f"Unknown milestone action '{action}'.")
        data = MilestoneActionSerializer(data=request.data)
        data.is_valid(raise_exception=True)
        controller = escrow_controller()

        if action == 'approve':
            record = controller.approve_milestone(pk, index, request.user)
        elif action == 'reject':
            record = controller.reject_milestone(pk, index, request.user)
        elif action == 'dispute':
            record = controller.dispute_milestone(pk, index, request.user, data.validated_data['reason'])
        elif action == 'resolve':
            record = controller.resolve_dispute(pk, index, request.user, data.validated_data['decision'])
        else:
            record = controller.release(pk, index, request.user)

        return Response(
            {'milestone_index': index, 'escrow': MilestoneEscrowRecordSerializer(record).data},
            status=status.HTTP_200_OK,
        )
