"""
Source adapters for the external systems.
"""

from .bank_accounts import BankAccountSource
from .base import SourceAdapter
from .http_client import ApiClient
from .increase import ACHTransferSource
from .modern_treasury import PaymentOrderSource, extract_ach_transfer_id
from .salsa_graphql import EntitySource, SalsaGraphQLClient

__all__ = [
    "ACHTransferSource",
    "ApiClient",
    "BankAccountSource",
    "EntitySource",
    "PaymentOrderSource",
    "SalsaGraphQLClient",
    "SourceAdapter",
    "extract_ach_transfer_id",
]
