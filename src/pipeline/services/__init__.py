"""
Report services, one per CLI command.
"""

from .employer_bank_info import EMPLOYER_BANK_INFO_SCHEMA, get_employer_bank_info
from .employer_info import EMPLOYER_INFO_SCHEMA, get_employer_info
from .increase_transactions import INCREASE_TRANSACTIONS_SCHEMA, get_increase_transactions
from .worker_bank_info import WORKER_BANK_INFO_SCHEMA, get_worker_bank_info
from .worker_info import (
    WORKER_INFO_SCHEMA,
    get_worker_info_by_employer_ids,
    get_worker_info_by_worker_ids,
)

__all__ = [
    "EMPLOYER_BANK_INFO_SCHEMA",
    "EMPLOYER_INFO_SCHEMA",
    "INCREASE_TRANSACTIONS_SCHEMA",
    "WORKER_BANK_INFO_SCHEMA",
    "WORKER_INFO_SCHEMA",
    "get_employer_bank_info",
    "get_employer_info",
    "get_increase_transactions",
    "get_worker_bank_info",
    "get_worker_info_by_employer_ids",
    "get_worker_info_by_worker_ids",
]
