"""
Employer business information report.
"""

from typing import Sequence

from src.core.models import EmployerInfo, OutputSchema
from src.pipeline.context import ReconContext
from src.pipeline.join_engine import JoinEngine, RunResult
from src.pipeline.services.reporting import run_report

EMPLOYER_INFO_SCHEMA = OutputSchema.of(
    "employer-business-info",
    "employer-business-info.csv",
    ("employer_id", "Employer ID"),
    ("business_name", "Business name"),
    ("ein", "EIN"),
    ("address_line1", "Address line 1"),
    ("address_line2", "Address line 2"),
    ("city", "City"),
    ("state", "State"),
    ("postal_code", "Postal code"),
)


def build_employer_record(employer_id: str, employer: EmployerInfo, _secondary=None) -> dict:
    return employer.model_dump(
        include={
            "employer_id",
            "business_name",
            "ein",
            "address_line1",
            "address_line2",
            "city",
            "state",
            "postal_code",
        }
    )


def get_employer_info(context: ReconContext, employer_ids: Sequence[str]) -> RunResult:
    """Write output/employer-business-info.csv for the given employers."""
    entities = context.entities
    engine = JoinEngine(
        name="employer-business-info",
        schema=EMPLOYER_INFO_SCHEMA,
        fetch_primary=lambda employer_id: [entities.fetch_employer(employer_id)],
        build_record=build_employer_record,
        policy=context.policy,
        workers=context.workers,
    )
    return run_report(context, engine, employer_ids)
