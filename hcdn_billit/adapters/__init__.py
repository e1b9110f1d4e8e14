"""
Adapters package for the HCDN billit storer.

This package contains the transport to external services.
"""

from .billit_client import BillitClient

__all__ = [
    "BillitClient",
]
