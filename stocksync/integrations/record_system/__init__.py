from .base import InventoryItem, RecordSystemAdapter, RecordSystemConfig
from .client import RecordSystemClient
from .connections import ConnectionRegistry
from .live import LiveRecordSystem
from .simulation import SimulationRecordSystem

__all__ = [
    'InventoryItem',
    'RecordSystemAdapter',
    'RecordSystemConfig',
    'RecordSystemClient',
    'ConnectionRegistry',
    'LiveRecordSystem',
    'SimulationRecordSystem',
]
