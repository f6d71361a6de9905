"""
Stock services — one class per concern, wired together by StockService.

    from vendorstock.services import StockRecorder, AlertEngine, BatchTracker
"""

from vendorstock.services.alerts import AlertEngine
from vendorstock.services.analytics import StockAnalytics
from vendorstock.services.batches import Allocation, BatchInfo, BatchTracker
from vendorstock.services.configs import StockConfigs
from vendorstock.services.integration import BillItem, BillStockHooks, OrderLine, OrderStockHooks
from vendorstock.services.movements import LedgerAudit, StockRecorder, StockResult

__all__ = [
    'AlertEngine',
    'StockAnalytics',
    'Allocation',
    'BatchInfo',
    'BatchTracker',
    'StockConfigs',
    'BillItem',
    'BillStockHooks',
    'OrderLine',
    'OrderStockHooks',
    'LedgerAudit',
    'StockRecorder',
    'StockResult',
]
