class SyncEngineError(Exception):
    """Base exception for all sync engine errors."""
    pass

class RecordSystemError(SyncEngineError):
    """Base exception for record system (RMS) errors."""
    pass

class RecordSystemConnectionError(RecordSystemError):
    """Raised when the record system is unreachable or not configured."""
    pass

class TransientQueryError(RecordSystemError):
    """Raised when a query fails for a reason other than connectivity."""
    pass

class NotFoundError(SyncEngineError):
    """Raised when a SKU or style does not exist in the record system."""
    pass

class StyleNotFoundError(NotFoundError):
    """Raised when a style resolves to zero variants."""
    pass

class CatalogStoreError(SyncEngineError):
    """Raised when the catalog store cannot be read or written."""
    pass

class MalformedEventError(SyncEngineError):
    """Raised when a storefront webhook line item cannot be processed."""
    pass
