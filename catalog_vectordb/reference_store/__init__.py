"""
Reference store backends.
"""

from .base import ReferenceStore
from .document import from_document, to_document

__all__ = [
    "ReferenceStore",
    "from_document",
    "to_document",
]
