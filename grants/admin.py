from django.contrib import admin

from grants.models import ApplicationMilestone, Grant, GrantApplication, GrantMilestone


class GrantMilestoneInline(admin.TabularInline):
    model = GrantMilestone
    extra = 0


@admin.register(Grant)
class GrantAdmin(admin.ModelAdmin):
    list_display = ('title', 'creator', 'status', 'total_budget', 'created_at')
    list_filter = ('status',)
    search_fields = ('title', 'creator__username')
    inlines = [GrantMilestoneInline]


class ApplicationMilestoneInline(admin.TabularInline):
    model = ApplicationMilestone
    extra = 0


@admin.register(GrantApplication)
class GrantApplicationAdmin(admin.ModelAdmin):
    list_display = ('title', 'grant', 'applicant', 'status', 'escrowed_amount', 'milestones_completed', 'archived')
    list_filter = ('status', 'archived')
    search_fields = ('title', 'applicant__username', 'grant__title')
    list_select_related = ('grant', 'applicant')
    readonly_fields = ('escrowed_amount', 'escrow_reference', 'milestones_completed', 'reviewed_by', 'reviewed_at')
    inlines = [ApplicationMilestoneInline]
