from .style import StyleCreate, StyleRead
from .webhook import OrderLineItem

__all__ = [
    'StyleCreate',
    'StyleRead',
    'OrderLineItem',
]
