"""
Worker personal information report.

Workers can be selected by worker id or by employer id (every worker of the
employer). Both write the same report.
"""

from typing import Sequence

from src.core.models import OutputSchema, WorkerInfo
from src.pipeline.context import ReconContext
from src.pipeline.join_engine import JoinEngine, RunResult
from src.pipeline.services.reporting import run_report

WORKER_INFO_SCHEMA = OutputSchema.of(
    "worker-personal-info",
    "worker-personal-info.csv",
    ("employer_id", "Employer ID"),
    ("worker_id", "Worker ID"),
    ("first_name", "First Name"),
    ("last_name", "Last Name"),
    ("date_of_birth", "Date of Birth"),
    ("address_line1", "Address Line 1"),
    ("address_line2", "Address Line 2"),
    ("city", "City"),
    ("state", "State"),
    ("postal_code", "Postal Code"),
    ("ssn", "SSN"),
)


def build_worker_record(_key: str, worker: WorkerInfo, _secondary=None) -> dict:
    return worker.model_dump(include=set(WORKER_INFO_SCHEMA.field_ids))


def get_worker_info_by_worker_ids(context: ReconContext, worker_ids: Sequence[str]) -> RunResult:
    """Write output/worker-personal-info.csv for the given workers."""
    entities = context.entities
    engine = JoinEngine(
        name="worker-personal-info",
        schema=WORKER_INFO_SCHEMA,
        fetch_primary=lambda worker_id: [entities.fetch_worker(worker_id)],
        build_record=build_worker_record,
        policy=context.policy,
        workers=context.workers,
    )
    return run_report(context, engine, worker_ids)


def get_worker_info_by_employer_ids(context: ReconContext, employer_ids: Sequence[str]) -> RunResult:
    """Write output/worker-personal-info.csv for every worker of the given employers."""
    engine = JoinEngine(
        name="worker-personal-info",
        schema=WORKER_INFO_SCHEMA,
        fetch_primary=context.entities.fetch_workers_for_employer,
        build_record=build_worker_record,
        policy=context.policy,
        workers=context.workers,
    )
    return run_report(context, engine, employer_ids)
