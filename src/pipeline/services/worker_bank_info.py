"""
Worker bank account report.
"""

from typing import Sequence

from src.core.models import OutputSchema, WorkerBankAccount
from src.pipeline.context import ReconContext
from src.pipeline.join_engine import JoinEngine, RunResult
from src.pipeline.services.reporting import run_report

WORKER_BANK_INFO_SCHEMA = OutputSchema.of(
    "worker-bank-info",
    "worker-bank-info.csv",
    ("employer_id", "Employer id"),
    ("worker_id", "Worker id"),
    ("bank_name", "Bank name"),
    ("account_number", "Account Number"),
    ("routing_number", "Routing number"),
    ("party_name", "Party name"),
    ("is_deleted", "Is Deleted"),
    ("created_date", "Created Date"),
)


def build_worker_bank_record(employer_id: str, account: WorkerBankAccount, _secondary=None) -> dict:
    return {
        "employer_id": account.employer_id,
        "worker_id": account.worker_id,
        "bank_name": account.bank_name,
        "account_number": account.account_number,
        "routing_number": account.routing_number,
        "party_name": account.party_name,
        "is_deleted": "Yes" if account.is_deleted else "No",
        "created_date": account.created_date,
    }


def get_worker_bank_info(context: ReconContext, employer_ids: Sequence[str]) -> RunResult:
    """Write output/worker-bank-info.csv for the workers of the given employers."""
    try:
        bank_accounts = context.bank_accounts
        engine = JoinEngine(
            name="worker-bank-info",
            schema=WORKER_BANK_INFO_SCHEMA,
            fetch_primary=lambda employer_id: bank_accounts.fetch_worker_bank_accounts([employer_id]),
            build_record=build_worker_bank_record,
            policy=context.policy,
            workers=context.workers,
        )
        return run_report(context, engine, employer_ids)
    finally:
        context.close_graph()
