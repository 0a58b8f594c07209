"""
Value helpers for money, percentages and funding windows.

Amounts are fixed-point Decimals with seven places, as on the settlement
network. Nothing in here touches the database.
"""
from decimal import Decimal, InvalidOperation, ROUND_DOWN, getcontext

from django.utils import timezone

from core.exceptions import InvalidArgument


getcontext().prec = 28

MONEY_MAX_DIGITS = 20
MONEY_DECIMAL_PLACES = 7
MONEY_QUANTUM = Decimal('0.0000001')
PERCENT_QUANTUM = Decimal('0.01')
HUNDRED = Decimal('100')
ZERO = Decimal('0')


def _to_decimal(value, field):
    if isinstance(value, bool) or value is None:
        raise InvalidArgument(f"{field} must be a number.")
    if isinstance(value, float):
        value = str(value)
    try:
        number = Decimal(value) if not isinstance(value, Decimal) else value
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidArgument(f"{field} must be a number.")
    if not number.is_finite():
        raise InvalidArgument(f"{field} must be a finite number.")
    return number


def to_money(value, field='amount'):
    """Parse and quantize a monetary amount. Sign is not checked here."""
    return _to_decimal(value, field).quantize(MONEY_QUANTUM, rounding=ROUND_DOWN)


def to_positive_money(value, field='amount'):
    amount = to_money(value, field)
    if amount <= ZERO:
        raise InvalidArgument(f"{field} must be a positive number.")
    return amount


def to_percentage(value, field='payout_percentage'):
    pct = _to_decimal(value, field).quantize(PERCENT_QUANTUM, rounding=ROUND_DOWN)
    if pct < ZERO or pct > HUNDRED:
        raise InvalidArgument(f"{field} must be between 0 and 100.")
    return pct


def percentage_of(amount, pct):
    return (Decimal(amount) * Decimal(pct) / HUNDRED).quantize(MONEY_QUANTUM, rounding=ROUND_DOWN)


def allocate(amount, weights):
    """
    Split ``amount`` proportionally to ``weights``.
    Shares are rounded down and the remainder goes to the last share,
    so the result always sums to ``amount``.
    """
    weights = [Decimal(w) for w in weights]
    if not weights:
        return []
    total = sum(weights, ZERO)
    if total <= ZERO:
        shares = [ZERO] * len(weights)
    else:
        shares = [(amount * w / total).quantize(MONEY_QUANTUM, rounding=ROUND_DOWN) for w in weights]
    shares[-1] += amount - sum(shares, ZERO)
    return shares


def ensure_future(moment, now=None, field='deadline'):
    now = now or timezone.now()
    if moment is None or moment <= now:
        raise InvalidArgument(f"{field} must be in the future.")
    return moment


class FundingWindow:
    """Half-open funding period; a missing bound means unbounded."""

    def __init__(self, opens_at=None, closes_at=None):
        self.opens_at = opens_at
        self.closes_at = closes_at

    def has_closed(self, now=None):
        now = now or timezone.now()
        return self.closes_at is not None and now > self.closes_at

    def has_opened(self, now=None):
        now = now or timezone.now()
        return self.opens_at is None or now >= self.opens_at

    def is_open(self, now=None):
        return self.has_opened(now) and not self.has_closed(now)

    def __repr__(self):
        return f"FundingWindow({self.opens_at!r}, {self.closes_at!r})"
