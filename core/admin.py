from django.contrib import admin, messages
from django.utils.html import format_html
from django.utils.translation import gettext_lazy as _

from core.exceptions import LifecycleError
from core.models import Campaign, CampaignMilestone, CampaignStatus, CrowdfundThreshold, Notification, Project, Vote
from core.services.campaign_service import CampaignService


class CrowdfundThresholdInline(admin.StackedInline):
    model = CrowdfundThreshold
    extra = 0
    readonly_fields = ('total_votes', 'upvotes', 'downvotes', 'status', 'threshold_met_at', 'expired_at')


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ('title', 'owner', 'status', 'funding_goal', 'funds_raised', 'funding_end_date', 'created_at')
    list_filter = ('status', 'created_at')
    search_fields = ('title', 'owner__username')
    list_select_related = ('owner',)
    filter_horizontal = ('team_members',)
    readonly_fields = ('funds_raised', 'created_at', 'updated_at')
    inlines = [CrowdfundThresholdInline]


@admin.register(Vote)
class VoteAdmin(admin.ModelAdmin):
    list_display = ('project', 'voter', 'value', 'created_at')
    list_filter = ('value',)
    search_fields = ('project__title', 'voter__username')


class CampaignMilestoneInline(admin.TabularInline):
    model = CampaignMilestone
    extra = 0
    fields = ('index', 'title', 'payout_percentage', 'amount', 'escrow_index')
    readonly_fields = ('amount', 'escrow_index')


@admin.register(Campaign)
class CampaignAdmin(admin.ModelAdmin):
    list_display = ('project', 'creator', 'status_badge', 'goal_amount', 'funds_raised', 'deadline', 'approved_at')
    list_filter = ('status', 'deadline')
    search_fields = ('project__title', 'creator__username', 'creator__email')
    list_select_related = ('project', 'creator')
    list_per_page = 25
    inlines = [CampaignMilestoneInline]
    actions = ['approve_campaigns']
    readonly_fields = ('funds_raised', 'approved_by', 'approved_at', 'escrow_contract_ref', 'created_at', 'updated_at')
    fieldsets = (
        (_('Basic Information'), {
            'fields': ('project', 'creator', 'status', 'rejected_reason')
        }),
        (_('Funding'), {
            'fields': ('goal_amount', 'funds_raised', 'currency', 'deadline')
        }),
        (_('Documents'), {
            'fields': ('whitepaper_url', 'pitch_deck_url')
        }),
        (_('Approval & Escrow'), {
            'fields': ('approved_by', 'approved_at', 'escrow_contract_ref', 'created_at', 'updated_at')
        }),
    )

    def status_badge(self, obj):
        status_colors = {
            CampaignStatus.PENDING_APPROVAL: 'bg-warning text-dark',
            CampaignStatus.LIVE: 'bg-success',
            CampaignStatus.FUNDED: 'bg-primary',
            CampaignStatus.CANCELLED: 'bg-danger',
        }
        return format_html(
            '<span class="badge {}">{}</span>',
            status_colors.get(obj.status, 'bg-secondary'),
            obj.get_status_display()
        )
    status_badge.short_description = 'Status'
    status_badge.admin_order_field = 'status'

    @admin.action(description='Approve selected campaigns')
    def approve_campaigns(self, request, queryset):
        service = CampaignService()
        approved = 0
        for campaign in queryset.filter(status=CampaignStatus.PENDING_APPROVAL):
            try:
                service.approve(campaign.pk, request.user)
            except LifecycleError as e:
                self.message_user(request, f"Campaign for '{campaign.project}': {e.detail}", messages.WARNING)
                continue
            approved += 1
        self.message_user(request, f'Successfully approved {approved} campaigns.', messages.SUCCESS)


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('user', 'event_type', 'title', 'type', 'is_read', 'created_at')
    list_filter = ('type', 'is_read', 'is_active')
    search_fields = ('user__username', 'title', 'event_type')
