"""
Entry module for cqlgraph - logical records and their physical encoding.

This module handles:
- Static column layouts per entity kind
- Property / Row / Entry value objects
- Decoding physical rows and encoding inserts and deletes
"""

from .codec import EntryCodec
from .layout import COLUMN_LAYOUTS, ColumnLayout, ColumnRole, layout_for
from .models import EXIST, Entry, Property, Row

__all__ = [
    "EntryCodec",
    "COLUMN_LAYOUTS",
    "ColumnLayout",
    "ColumnRole",
    "layout_for",
    "EXIST",
    "Entry",
    "Property",
    "Row",
]
