"""
Tests — validate_movement: admission rules without a database.

@file stock/tests/test_rules.py
"""

import uuid
from types import SimpleNamespace

import pytest

from stock import rules
from stock.rules import MovementRequest, validate_movement


def _product(quantity=10, is_active=True):
    return SimpleNamespace(pk=uuid.uuid4(), quantity=quantity, is_active=is_active)


def _location(capacity=20, is_active=True):
    return SimpleNamespace(pk=uuid.uuid4(), code='A-01-01-01', capacity=capacity, is_active=is_active)


def _request(movement_type='IN', quantity=5):
    return MovementRequest(
        product_id=uuid.uuid4(), location_id=uuid.uuid4(),
        movement_type=movement_type, quantity=quantity,
    )


class TestInvalidRequests:
    @pytest.mark.parametrize('quantity', [0, -3])
    def test_non_positive_quantity(self, quantity):
        decision = validate_movement(_request(quantity=quantity), _product(), _location(), 0)
        assert not decision.admitted
        assert decision.reason == rules.INVALID_MOVEMENT

    def test_unknown_type(self):
        decision = validate_movement(_request(movement_type='MOVE'), _product(), _location(), 0)
        assert decision.reason == rules.INVALID_MOVEMENT


class TestReferenceAvailability:
    def test_inactive_product(self):
        decision = validate_movement(_request(), _product(is_active=False), _location(), 0)
        assert decision.reason == rules.REFERENCE_UNAVAILABLE

    def test_inactive_location(self):
        decision = validate_movement(_request('OUT'), _product(), _location(is_active=False))
        assert decision.reason == rules.REFERENCE_UNAVAILABLE


class TestOutbound:
    def test_admitted(self):
        decision = validate_movement(_request('OUT', 4), _product(10), _location())
        assert decision.admitted
        assert decision.new_product_quantity == 6

    def test_to_exactly_zero(self):
        decision = validate_movement(_request('OUT', 10), _product(10), _location())
        assert decision.admitted
        assert decision.new_product_quantity == 0

    def test_insufficient_stock(self):
        decision = validate_movement(_request('OUT', 11), _product(10), _location())
        assert not decision.admitted
        assert decision.reason == rules.INSUFFICIENT_STOCK
        assert decision.new_product_quantity is None

    def test_capacity_is_not_checked(self):
        decision = validate_movement(_request('OUT', 5), _product(10), _location(capacity=1), 500)
        assert decision.admitted


class TestInbound:
    def test_admitted(self):
        decision = validate_movement(_request('IN', 15), _product(10), _location(20), 0)
        assert decision.admitted
        assert decision.new_product_quantity == 25

    def test_fills_to_exactly_capacity(self):
        decision = validate_movement(_request('IN', 5), _product(0), _location(20), 15)
        assert decision.admitted

    def test_exceeds_capacity(self):
        decision = validate_movement(_request('IN', 10), _product(25), _location(20), 15)
        assert not decision.admitted
        assert decision.reason == rules.EXCEEDS_CAPACITY

    def test_negative_occupancy_leaves_headroom(self):
        decision = validate_movement(_request('IN', 30), _product(0), _location(20), -10)
        assert decision.admitted

    def test_occupancy_required(self):
        with pytest.raises(ValueError):
            validate_movement(_request('IN', 1), _product(), _location())

    def test_is_deterministic(self):
        args = (_request('IN', 3), _product(1), _location(20), 2)
        assert validate_movement(*args) == validate_movement(*args)
