"""
Tests for money, percentage and window helpers and input validators.
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from core.exceptions import InvalidArgument
from core.utils.helper import is_valid_settlement_tx_id, is_valid_stellar_address, is_valid_url
from core.utils.ledger import FundingWindow, allocate, ensure_future, percentage_of, to_money, to_percentage

from tests.conftest import make_stellar_address, make_tx_hash


class TestMoney:

    def test_float_input_does_not_drift(self):
        assert to_money(0.1) + to_money(0.2) == Decimal('0.3')

    def test_quantizes_to_seven_places(self):
        assert to_money('1.123456789') == Decimal('1.1234567')

    @pytest.mark.parametrize('value', [None, True, 'abc', 'NaN', 'Infinity', [1]])
    def test_rejects_non_numeric(self, value):
        with pytest.raises(InvalidArgument):
            to_money(value)

    def test_percentage_bounds(self):
        assert to_percentage('33.333') == Decimal('33.33')
        with pytest.raises(InvalidArgument):
            to_percentage(101)
        with pytest.raises(InvalidArgument):
            to_percentage(-1)

    def test_percentage_of_goal(self):
        assert percentage_of(Decimal('1000'), Decimal('40')) == Decimal('400')


class TestAllocate:

    def test_shares_sum_to_amount(self):
        shares = allocate(Decimal('100'), [1, 1, 1])
        assert sum(shares) == Decimal('100')
        assert shares[0] == shares[1]

    def test_proportional_split(self):
        assert allocate(Decimal('300'), [Decimal('1000'), Decimal('2000')]) == [Decimal('100'), Decimal('200')]

    def test_zero_weights_put_everything_on_last_share(self):
        assert allocate(Decimal('10'), [0, 0]) == [Decimal('0'), Decimal('10')]


class TestFundingWindow:

    def test_open_inside_bounds(self):
        now = timezone.now()
        window = FundingWindow(now - timedelta(days=1), now + timedelta(days=1))
        assert window.is_open(now)
        assert not window.has_closed(now)

    def test_closed_after_deadline(self):
        now = timezone.now()
        window = FundingWindow(closes_at=now - timedelta(seconds=1))
        assert window.has_closed(now)
        assert not window.is_open(now)

    def test_ensure_future_is_strict(self):
        now = timezone.now()
        with pytest.raises(InvalidArgument):
            ensure_future(now, now=now)
        assert ensure_future(now + timedelta(seconds=1), now=now)


class TestValidators:

    def test_stellar_address_round_trip(self):
        assert is_valid_stellar_address(make_stellar_address())

    def test_stellar_address_bad_checksum(self):
        address = make_stellar_address(b'\x02' * 32)
        tampered = address[:-1] + ('A' if address[-1] != 'A' else 'B')
        assert not is_valid_stellar_address(tampered)

    @pytest.mark.parametrize('address', ['', 'G123', 'S' + 'A' * 55, None])
    def test_stellar_address_malformed(self, address):
        assert not is_valid_stellar_address(address)

    def test_settlement_tx_id_format(self):
        assert is_valid_settlement_tx_id(make_tx_hash('a'))
        assert not is_valid_settlement_tx_id('0x' + make_tx_hash('a')[:62])
        assert not is_valid_settlement_tx_id('abc')

    def test_url(self):
        assert is_valid_url('https://example.com/deck.pdf')
        assert not is_valid_url('not a url')
