from django.urls import path
from api.views.projects import (
    ProjectListCreateAPIView,
    ProjectFundingAPIView,
    ProjectVoteAPIView,
    ProjectFundAPIView,
)
from api.views.campaigns import (
    CampaignListCreateAPIView,
    CampaignDetailAPIView,
    CampaignApproveAPIView,
    CampaignRejectAPIView,
    CampaignBackAPIView,
)
from api.views.grants import (
    GrantListCreateAPIView,
    GrantStatusAPIView,
    GrantApplicationsAPIView,
    GrantApplicationSubmitAPIView,
    ApplicationMilestonesAPIView,
    ApplicationReviewAPIView,
    ApplicationEscrowAPIView,
    MilestoneActionAPIView,
)
from api.views.notifications import (
    NotificationListView,
    NotificationDetailView,
    NotificationMarkReadView,
    NotificationMarkAllReadView,
    NotificationUnreadCountView,
)


urlpatterns = [

    # Projects & crowdfund voting
    path('projects/', ProjectListCreateAPIView.as_view(), name='api_projects'),
    path('projects/<uuid:pk>/funding/', ProjectFundingAPIView.as_view(), name='api_project_funding'),
    path('projects/<uuid:pk>/vote/', ProjectVoteAPIView.as_view(), name='api_project_vote'),
    path('projects/<uuid:pk>/fund/', ProjectFundAPIView.as_view(), name='api_project_fund'),

    # Campaigns
    path('campaigns/', CampaignListCreateAPIView.as_view(), name='api_campaigns'),
    path('campaigns/<uuid:pk>/', CampaignDetailAPIView.as_view(), name='api_campaign_detail'),
    path('campaigns/<uuid:pk>/approve/', CampaignApproveAPIView.as_view(), name='api_campaign_approve'),
    path('campaigns/<uuid:pk>/reject/', CampaignRejectAPIView.as_view(), name='api_campaign_reject'),
    path('campaigns/<uuid:pk>/back/', CampaignBackAPIView.as_view(), name='api_campaign_back'),

    # Grants
    path('grants/', GrantListCreateAPIView.as_view(), name='api_grants'),
    path('grants/grant-applications/', GrantApplicationSubmitAPIView.as_view(), name='api_grant_application_submit'),
    path('grants/<uuid:pk>/status/', GrantStatusAPIView.as_view(), name='api_grant_status'),
    path('grants/<uuid:pk>/applications/', GrantApplicationsAPIView.as_view(), name='api_grant_applications'),

    # Grant applications & milestone escrow
    path('grant-applications/<uuid:pk>/milestones/', ApplicationMilestonesAPIView.as_view(), name='api_application_milestones'),
    path('grant-applications/<uuid:pk>/review/', ApplicationReviewAPIView.as_view(), name='api_application_review'),
    path('grant-applications/<uuid:pk>/escrow/', ApplicationEscrowAPIView.as_view(), name='api_application_escrow'),
    path(
        'grant-applications/<uuid:pk>/milestones/<int:index>/<str:action>/',
        MilestoneActionAPIView.as_view(),
        name='api_milestone_action'
    ),

    # Notifications
    path('notifications/', NotificationListView.as_view(), name='notification-list'),
    path('notifications/<uuid:pk>/', NotificationDetailView.as_view(), name='notification-detail'),
    path('notifications/<uuid:pk>/mark-read/', NotificationMarkReadView.as_view(), name='notification-mark-read'),
    path('notifications/mark-all-read/', NotificationMarkAllReadView.as_view(), name='notification-mark-all-read'),
    path('notifications/unread-count/', NotificationUnreadCountView.as_view(), name='notification-unread-count'),
]
