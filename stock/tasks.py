"""
Stock — Celery Tasks

Periodic ledger reconciliation.

@file stock/tasks.py
"""

import logging

from celery import shared_task

logger = logging.getLogger('wms')


@shared_task(name='stock.reconcile_product_quantities')
def reconcile_product_quantities_task():
    """
    Daily task: compare every product's cached quantity with its ledger
    projection and log the products that drifted. Nothing is repaired
    automatically; use ``manage.py check_stock_drift --repair``.
    """
    from .services import StockReconciliationService

    drift = StockReconciliationService.find_quantity_drift()
    logger.info('reconcile_product_quantities_task completed: %d products drifted.', len(drift))
    return {
        'drifted_count': len(drift),
        'products': [item.sku for item in drift],
    }
