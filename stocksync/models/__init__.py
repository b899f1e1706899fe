from .style import Style
from .tenant_setting import TenantSetting
from .stock_decrement_job import StockDecrementJob
from .sync_run import SyncRun

# This ensures all models are registered with SQLAlchemy
__all__ = [
    'Style',
    'TenantSetting',
    'StockDecrementJob',
    'SyncRun',
]
