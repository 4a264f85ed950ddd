"""
Record models for the reconciliation pipeline.

All models use Pydantic for runtime validation and are immutable once built.
"""

from .ach_transfer import ACHTransfer
from .bank_account import AuthorizerInfo, EmployerBankAccount, WorkerBankAccount
from .employer import EmployerInfo
from .output_schema import Column, OutputSchema
from .payment_order import PaymentOrder, PaymentReference
from .worker import WorkerInfo

__all__ = [
    "ACHTransfer",
    "AuthorizerInfo",
    "Column",
    "EmployerBankAccount",
    "EmployerInfo",
    "OutputSchema",
    "PaymentOrder",
    "PaymentReference",
    "WorkerBankAccount",
    "WorkerInfo",
]
