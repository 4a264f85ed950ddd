"""
Increase transactions report.

Joins the payment orders of each payroll run (Modern Treasury) to the ACH
transfers they reference (Increase). Orders without a transfer reference
are skipped.
"""

from typing import Sequence

from src.core.models import ACHTransfer, OutputSchema, PaymentOrder
from src.pipeline.context import ReconContext
from src.pipeline.join_engine import JoinEngine, RunResult, SecondaryJoin
from src.pipeline.lookup_cache import DirectLookup
from src.pipeline.services.reporting import run_report
from src.sources.modern_treasury import extract_ach_transfer_id

INCREASE_TRANSACTIONS_SCHEMA = OutputSchema.of(
    "increase-transactions",
    "increase-transactions.csv",
    ("payroll_run_id", "Payroll run ID"),
    ("direction", "Direction"),
    ("effective_date", "Transaction date"),
    ("amount", "Amount"),
    ("transaction_id", "Transaction ID"),
)


def build_transaction_record(payroll_run_id: str, order: PaymentOrder, transfer: ACHTransfer) -> dict:
    return {
        "payroll_run_id": payroll_run_id,
        "direction": order.direction,
        "effective_date": order.effective_date,
        "amount": order.amount,
        "transaction_id": transfer.transaction_id,
    }


def get_increase_transactions(context: ReconContext, payroll_run_ids: Sequence[str]) -> RunResult:
    """Write output/increase-transactions.csv for the given payroll runs."""
    engine = JoinEngine(
        name="increase-transactions",
        schema=INCREASE_TRANSACTIONS_SCHEMA,
        fetch_primary=context.payment_orders.fetch,
        build_record=build_transaction_record,
        secondary=SecondaryJoin(
            derive_key=extract_ach_transfer_id,
            lookup=DirectLookup(context.ach_transfers.fetch_one),
        ),
        policy=context.policy,
        workers=context.workers,
    )
    return run_report(context, engine, payroll_run_ids)
