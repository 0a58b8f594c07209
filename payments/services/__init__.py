from .audit import PaymentAuditService
from .settlement_client import EscrowSettlementClient
from .funding_ledger import FundingLedger
from .escrow_service import MilestoneEscrowController
