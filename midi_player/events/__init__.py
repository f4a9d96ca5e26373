"""Change notification primitives."""

from .notifier import (
    ALL_COLUMNS,
    ALL_ROWS,
    HEADER_ROW,
    DispatchQueue,
    Notifier,
    PropertyChangeEvent,
    TableChangeEvent,
    values_differ,
)

__all__ = [
    "ALL_COLUMNS",
    "ALL_ROWS",
    "HEADER_ROW",
    "DispatchQueue",
    "Notifier",
    "PropertyChangeEvent",
    "TableChangeEvent",
    "values_differ",
]
