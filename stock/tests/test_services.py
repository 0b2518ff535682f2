"""
Tests — MovementService: admission, atomicity, retries and the ledger
queries behind it. Racing movements on separate connections: exactly
one of two competing for the same stock or capacity is admitted.

@file stock/tests/test_services.py
"""

import threading
import uuid
from dataclasses import replace
from datetime import timedelta
from unittest import mock

import pytest
from django.db import DatabaseError, connection
from django.db.models import F
from django.utils import timezone

from core.exceptions import (
    BusinessRuleViolation,
    ExceedsCapacityError,
    InsufficientStockError,
    InvalidMovementError,
    MovementRejected,
    PersistenceError,
    ReferenceUnavailableError,
    ResourceNotFoundError,
    WriteConflictError,
)
from core.models import AuditLog
from products.models import Product
from products.services import ProductService
from stock import rules
from stock.filters import StockMovementFilter
from stock.models import StockMovement
from stock.rules import MovementRequest
from stock.services import CapacityService, MovementService, StockLedger, StockReconciliationService
from tests.factories import LocationFactory, ProductFactory, StockMovementFactory, UserFactory


def _move(product, location, movement_type, quantity, **extra):
    return MovementRequest(
        product_id=product.pk, location_id=location.pk,
        movement_type=movement_type, quantity=quantity, **extra,
    )


@pytest.mark.django_db
class TestProcessMovement:

    def test_warehouse_day(self):
        """Receipts bounded by capacity, shipments by stock; occupancy may go negative."""
        user = UserFactory()
        product = ProductFactory(quantity=10)
        location = LocationFactory(capacity=20)

        first = MovementService.process_movement(_move(product, location, 'IN', 15), user)
        assert first.product.quantity == 25

        with pytest.raises(ExceedsCapacityError):
            MovementService.process_movement(_move(product, location, 'IN', 10), user)

        with pytest.raises(InsufficientStockError):
            MovementService.process_movement(_move(product, location, 'OUT', 30), user)

        last = MovementService.process_movement(_move(product, location, 'OUT', 25), user)
        assert last.product.quantity == 0

        product.refresh_from_db()
        assert product.quantity == 0
        assert CapacityService.current_occupancy(location.pk) == -10
        assert StockMovement.objects.count() == 2

    def test_movement_carries_request_fields(self):
        user = UserFactory()
        movement = MovementService.process_movement(
            _move(ProductFactory(), LocationFactory(), 'IN', 3, reference='PO-7', notes='dock 2'),
            user,
        )
        assert movement.pk is not None
        assert movement.created_at is not None
        assert movement.user == user
        assert movement.reference == 'PO-7'
        assert movement.notes == 'dock 2'

    def test_admitted_movement_is_audited(self):
        movement = MovementService.process_movement(
            _move(ProductFactory(), LocationFactory(), 'IN', 3), UserFactory(),
        )
        log = AuditLog.objects.get(model_name='StockMovement', object_id=str(movement.pk))
        assert log.new_values['product_quantity'] == 3

    def test_quantity_matches_ledger_after_mixed_movements(self):
        user = UserFactory()
        product = ProductFactory(quantity=5)
        location = LocationFactory(capacity=1000)
        for movement_type, quantity in [('IN', 40), ('OUT', 12), ('IN', 7), ('OUT', 40)]:
            MovementService.process_movement(_move(product, location, movement_type, quantity), user)
        product.refresh_from_db()
        assert product.quantity == 5 + 40 - 12 + 7 - 40

    def test_missing_product_is_unavailable(self):
        location = LocationFactory()
        request = MovementRequest(
            product_id=uuid.uuid4(), location_id=location.pk, movement_type='IN', quantity=1,
        )
        with pytest.raises(ReferenceUnavailableError):
            MovementService.process_movement(request, UserFactory())

    def test_missing_location_is_unavailable(self):
        request = MovementRequest(
            product_id=ProductFactory().pk, location_id=uuid.uuid4(), movement_type='OUT', quantity=1,
        )
        with pytest.raises(ReferenceUnavailableError):
            MovementService.process_movement(request, UserFactory())

    @pytest.mark.parametrize('field', ['product_id', 'location_id'])
    def test_malformed_reference_is_unavailable(self, field):
        request = _move(ProductFactory(quantity=5), LocationFactory(), 'OUT', 1)
        request = replace(request, **{field: 'not-a-uuid'})
        with pytest.raises(ReferenceUnavailableError):
            MovementService.process_movement(request, UserFactory())
        assert not StockMovement.objects.exists()

    def test_inactive_product_is_unavailable(self):
        product = ProductFactory(quantity=10, is_active=False)
        with pytest.raises(ReferenceUnavailableError) as exc_info:
            MovementService.process_movement(_move(product, LocationFactory(), 'OUT', 1), UserFactory())
        assert exc_info.value.reason == 'REFERENCE_UNAVAILABLE'

    def test_invalid_quantity(self):
        with pytest.raises(InvalidMovementError):
            MovementService.process_movement(
                _move(ProductFactory(), LocationFactory(), 'IN', 0), UserFactory(),
            )

    def test_rejection_writes_nothing(self):
        user = UserFactory()
        product = ProductFactory(quantity=2)
        location = LocationFactory(capacity=5)
        for request in (_move(product, location, 'OUT', 3), _move(product, location, 'IN', 6)):
            with pytest.raises(MovementRejected):
                MovementService.process_movement(request, user)
        product.refresh_from_db()
        assert product.quantity == 2
        assert not StockMovement.objects.exists()
        assert not AuditLog.objects.filter(model_name='StockMovement').exists()

    def test_failed_quantity_write_rolls_back_ledger(self):
        product = ProductFactory(quantity=4)
        with mock.patch.object(
            ProductService, 'set_product_quantity', side_effect=PersistenceError(),
        ):
            with pytest.raises(PersistenceError):
                MovementService.process_movement(_move(product, LocationFactory(), 'IN', 1), UserFactory())
        product.refresh_from_db()
        assert product.quantity == 4
        assert not StockMovement.objects.exists()

    def test_failed_append_surfaces_persistence_error(self):
        product = ProductFactory(quantity=4)
        with mock.patch.object(StockMovement.objects, 'create', side_effect=DatabaseError('disk full')):
            with pytest.raises(PersistenceError) as exc_info:
                MovementService.process_movement(_move(product, LocationFactory(), 'OUT', 1), UserFactory())
        assert isinstance(exc_info.value.__cause__, DatabaseError)
        product.refresh_from_db()
        assert product.quantity == 4

    def test_sequential_shipments_of_the_same_stock(self):
        user = UserFactory()
        product = ProductFactory(quantity=6)
        location = LocationFactory()
        MovementService.process_movement(_move(product, location, 'OUT', 6), user)
        with pytest.raises(InsufficientStockError):
            MovementService.process_movement(_move(product, location, 'OUT', 6), user)
        assert StockMovement.objects.count() == 1


@pytest.mark.django_db
class TestWriteConflictRetry:

    def test_conflict_is_retried(self, monkeypatch):
        real = ProductService.set_product_quantity
        calls = []

        def flaky(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                raise WriteConflictError()
            return real(*args, **kwargs)

        monkeypatch.setattr(ProductService, 'set_product_quantity', flaky)
        product = ProductFactory(quantity=1)
        MovementService.process_movement(_move(product, LocationFactory(), 'IN', 2), UserFactory())

        assert len(calls) == 2
        product.refresh_from_db()
        assert product.quantity == 3
        assert StockMovement.objects.count() == 1

    def test_conflict_surfaces_after_retries(self, settings):
        settings.STOCK_WRITE_CONFLICT_RETRIES = 2
        product = ProductFactory(quantity=1)
        with mock.patch.object(
            ProductService, 'set_product_quantity', side_effect=WriteConflictError(),
        ) as write:
            with pytest.raises(WriteConflictError):
                MovementService.process_movement(_move(product, LocationFactory(), 'IN', 2), UserFactory())
        assert write.call_count == 3
        assert not StockMovement.objects.exists()


@pytest.mark.django_db
class TestCompareAndSwap:

    def test_quantity_changed_under_the_processor_is_retried(self, monkeypatch):
        """Another writer moves the quantity between read and write; the unit re-runs."""
        product = ProductFactory(quantity=10)
        location = LocationFactory()
        real_validate = rules.validate_movement
        calls = []

        def validate_then_interfere(request, product_row, location_row, occupancy):
            calls.append(product_row.quantity)
            decision = real_validate(request, product_row, location_row, occupancy)
            if len(calls) == 1:
                Product.objects.filter(pk=product_row.pk).update(quantity=F('quantity') - 1)
            return decision

        monkeypatch.setattr(rules, 'validate_movement', validate_then_interfere)
        movement = MovementService.process_movement(_move(product, location, 'OUT', 3), UserFactory())

        assert len(calls) == 2
        assert movement.product.quantity == 7
        assert StockMovement.objects.count() == 1
        product.refresh_from_db()
        assert product.quantity == 7

    def test_stale_expected_quantity_is_a_conflict(self):
        product = ProductFactory(quantity=5)
        with pytest.raises(WriteConflictError):
            ProductService.set_product_quantity(product.pk, 1, expected=4)
        product.refresh_from_db()
        assert product.quantity == 5


def _race(*requests, user):
    """Run each request on its own thread and connection, released together."""
    barrier = threading.Barrier(len(requests))
    outcomes = []

    def run(request):
        barrier.wait()
        try:
            MovementService.process_movement(request, user)
            outcomes.append('ok')
        except MovementRejected as exc:
            outcomes.append(exc.reason)
        finally:
            connection.close()

    threads = [threading.Thread(target=run, args=(request,)) for request in requests]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return sorted(outcomes)


@pytest.mark.django_db(transaction=True)
class TestConcurrentMovements:

    def test_two_shipments_of_the_same_stock(self):
        user = UserFactory()
        product = ProductFactory(quantity=6)
        location = LocationFactory()

        outcomes = _race(_move(product, location, 'OUT', 6), _move(product, location, 'OUT', 6), user=user)

        assert outcomes == ['INSUFFICIENT_STOCK', 'ok']
        product.refresh_from_db()
        assert product.quantity == 0
        assert StockMovement.objects.count() == 1

    def test_shipments_exceeding_stock_leave_the_remainder(self):
        user = UserFactory()
        product = ProductFactory(quantity=10)
        location = LocationFactory()

        outcomes = _race(_move(product, location, 'OUT', 6), _move(product, location, 'OUT', 6), user=user)

        assert outcomes == ['INSUFFICIENT_STOCK', 'ok']
        product.refresh_from_db()
        assert product.quantity == 4
        assert StockMovement.objects.get().quantity == 6

    def test_receipts_racing_for_the_last_capacity(self):
        user = UserFactory()
        location = LocationFactory(capacity=10)
        first, second = ProductFactory(), ProductFactory()

        outcomes = _race(_move(first, location, 'IN', 6), _move(second, location, 'IN', 6), user=user)

        assert outcomes == ['EXCEEDS_CAPACITY', 'ok']
        assert CapacityService.current_occupancy(location.pk) == 6
        assert StockMovement.objects.filter(location=location).count() == 1

    def test_mixed_race_keeps_quantity_on_the_ledger(self):
        user = UserFactory()
        product = ProductFactory(quantity=4)
        location = LocationFactory(capacity=100)

        outcomes = _race(
            _move(product, location, 'IN', 5),
            _move(product, location, 'OUT', 3),
            _move(product, location, 'OUT', 3),
            user=user,
        )

        product.refresh_from_db()
        assert product.quantity == StockReconciliationService.ledger_quantity(product)
        assert product.quantity >= 0
        assert outcomes.count('ok') == StockMovement.objects.count()


@pytest.mark.django_db
class TestCapacity:
    def test_empty_location(self):
        assert CapacityService.current_occupancy(LocationFactory().pk) == 0

    def test_counts_every_product(self):
        location = LocationFactory()
        StockMovementFactory(location=location, quantity=7)
        StockMovementFactory(location=location, quantity=3)
        StockMovementFactory(location=location, quantity=4, movement_type='OUT')
        StockMovementFactory(quantity=50)
        assert CapacityService.current_occupancy(location.pk) == 6


@pytest.mark.django_db
class TestLedgerQueries:

    def test_get_movement(self):
        movement = StockMovementFactory()
        found = MovementService.get_movement(movement.pk)
        assert found == movement
        assert found.product.sku == movement.product.sku

    def test_get_missing_movement(self):
        with pytest.raises(ResourceNotFoundError):
            MovementService.get_movement(999999)

    def test_newest_first_with_id_tiebreak(self):
        movements = StockMovementFactory.create_batch(3)
        page, total = MovementService.list_movements(StockMovementFilter())
        assert total == 3
        assert [m.pk for m in page] == sorted((m.pk for m in movements), reverse=True)

    def test_filters_are_combined(self):
        product = ProductFactory()
        location = LocationFactory()
        StockMovementFactory(product=product, location=location, movement_type='IN')
        StockMovementFactory(product=product, location=location, movement_type='OUT')
        StockMovementFactory(product=product)
        StockMovementFactory(location=location)

        page, total = MovementService.list_movements(
            StockMovementFilter(product_id=product.pk, location_id=location.pk, movement_type='OUT'),
        )
        assert total == 1
        assert page[0].movement_type == 'OUT'

    def test_user_filter(self):
        user = UserFactory()
        StockMovementFactory(user=user)
        StockMovementFactory()
        _, total = MovementService.list_movements(StockMovementFilter(user_id=user.pk))
        assert total == 1

    def test_pagination(self):
        StockMovementFactory.create_batch(5)
        page, total = MovementService.list_movements(StockMovementFilter(limit=2, offset=4))
        assert total == 5
        assert len(page) == 1

    def test_limit_zero_returns_only_total(self):
        StockMovementFactory.create_batch(2)
        page, total = MovementService.list_movements(StockMovementFilter(limit=0))
        assert page == []
        assert total == 2

    def test_date_range_is_inclusive(self):
        StockMovementFactory.create_batch(2)
        today = timezone.localdate()
        _, total = MovementService.list_movements(StockMovementFilter(date_from=today, date_to=today))
        assert total == 2
        _, total = MovementService.list_movements(
            StockMovementFilter(date_to=today - timedelta(days=1)),
        )
        assert total == 0

    def test_by_product_and_location(self):
        movement = StockMovementFactory()
        StockMovementFactory()
        assert StockLedger.by_product(movement.product_id)[1] == 1
        assert StockLedger.by_location(movement.location_id)[1] == 1

    @pytest.mark.parametrize('kwargs', [{'limit': -1}, {'offset': -1}, {'movement_type': 'SIDEWAYS'}])
    def test_invalid_filter(self, kwargs):
        with pytest.raises(BusinessRuleViolation):
            StockMovementFilter(**kwargs)
