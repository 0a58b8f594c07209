from django.contrib import admin

from payments.models import AuditLog, Contribution, MilestoneEscrowRecord, SettlementTransaction


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(SettlementTransaction)
class SettlementTransactionAdmin(ReadOnlyAdmin):
    list_display = ('reference', 'kind', 'amount', 'user', 'timestamp')
    list_filter = ('kind',)
    search_fields = ('reference', 'user__username')


@admin.register(Contribution)
class ContributionAdmin(ReadOnlyAdmin):
    list_display = ('contributor', 'amount', 'campaign', 'project', 'settlement_tx_id', 'timestamp')
    search_fields = ('settlement_tx_id', 'contributor__username', 'wallet_address')
    list_select_related = ('contributor', 'campaign', 'project')


@admin.register(MilestoneEscrowRecord)
class MilestoneEscrowRecordAdmin(ReadOnlyAdmin):
    list_display = ('milestone', 'status', 'escrowed_amount', 'lock_tx_hash', 'release_tx_hash', 'updated_at')
    list_filter = ('status',)
    search_fields = ('lock_tx_hash', 'escrow_reference', 'release_tx_hash', 'milestone__application__title')


@admin.register(AuditLog)
class AuditLogAdmin(ReadOnlyAdmin):
    list_display = ('action_type', 'target_type', 'target_id', 'user', 'timestamp')
    list_filter = ('action_type', 'target_type')
    search_fields = ('target_id', 'description', 'user__username')
