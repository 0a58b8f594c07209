from .ledger import SettlementKind, SettlementTransaction, Contribution
from .escrow import EscrowStatus, ESCROW_TRANSITIONS, assert_transition, MilestoneEscrowRecord
from .audit import AuditLog
