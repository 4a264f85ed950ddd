"""
Employer bank account report.

Lists every active and deleted bank account of each employer, enriched with
the authorizer of the account's payment authorization. Authorizer details
are resolved with one bulk query per employer; accounts without them carry
the literal "null" in the authorizer columns.
"""

from typing import Sequence

from src.core.models import AuthorizerInfo, EmployerBankAccount, OutputSchema
from src.pipeline.context import ReconContext
from src.pipeline.join_engine import JoinEngine, RunResult, SecondaryJoin
from src.pipeline.lookup_cache import BatchLookupCache
from src.pipeline.services.reporting import run_report

MISSING_AUTHORIZER = "null"

EMPLOYER_BANK_INFO_SCHEMA = OutputSchema.of(
    "employer-bank-info",
    "employer-bank-info.csv",
    ("employer_id", "Employer id"),
    ("bank_name", "Bank name"),
    ("account_number", "Account Number"),
    ("routing_number", "Routing number"),
    ("party_name", "Party name"),
    ("authorizer_first_name", "Authorizer first name"),
    ("authorizer_last_name", "Authorizer last name"),
    ("authorizer_email", "Authorizer email"),
    ("client_ip", "Client IP"),
    ("id", "Employer bank account id"),
)


def build_bank_account_record(
    employer_id: str,
    account: EmployerBankAccount,
    authorizer: AuthorizerInfo | None,
) -> dict:
    authorizer_fields = {
        "authorizer_first_name": authorizer.authorizer_first_name if authorizer else None,
        "authorizer_last_name": authorizer.authorizer_last_name if authorizer else None,
        "authorizer_email": authorizer.authorizer_email if authorizer else None,
        "client_ip": authorizer.client_ip_address if authorizer else None,
    }
    return {
        "employer_id": account.employer_id,
        "bank_name": account.bank_name or "",
        "account_number": account.account_number or "",
        "routing_number": account.routing_number or "",
        "party_name": account.party_name or "",
        **{k: v or MISSING_AUTHORIZER for k, v in authorizer_fields.items()},
        "id": account.id,
    }


def get_employer_bank_info(context: ReconContext, employer_ids: Sequence[str]) -> RunResult:
    """
    Write output/employer-bank-info.csv for the given employers.

    The graph database driver is closed when the report is done, whether it
    succeeds or not.
    """
    try:
        bank_accounts = context.bank_accounts
        engine = JoinEngine(
            name="employer-bank-info",
            schema=EMPLOYER_BANK_INFO_SCHEMA,
            fetch_primary=bank_accounts.fetch_employer_bank_accounts,
            build_record=build_bank_account_record,
            secondary=SecondaryJoin(
                derive_key=lambda account: account.id,
                lookup=BatchLookupCache("authorizer_info", bank_accounts.fetch_authorizers),
                required=False,
            ),
            policy=context.policy,
            workers=context.workers,
        )
        return run_report(context, engine, employer_ids)
    finally:
        context.close_graph()
