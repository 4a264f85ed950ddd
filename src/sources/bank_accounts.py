"""
Bank account source backed by the Salsa graph database.

Reads employer and worker bank accounts (active and deleted) and the
payment-authorization signatures attached to employer accounts.
"""

from typing import Sequence

from src.core.errors import SourceError
from src.core.models import AuthorizerInfo, EmployerBankAccount, WorkerBankAccount
from src.graph.connection import GraphDatabaseConnection
from src.observability.logger import get_logger
from src.sources.base import SourceAdapter

logger = get_logger(__name__)

_EMPLOYER_ACCOUNT_RETURN = """
    RETURN wba.entityId as id, wc.employerId as employer_id, wba.bankName as bank_name,
           wba.accountNumber as account_number, wba.routingNumber as routing_number,
           wba.partyName as party_name, wba.createdDate as created_date
    ORDER BY wc.employerId, wba.routingNumber, wba.createdDate
"""

ACTIVE_EMPLOYER_ACCOUNTS = """
    MATCH (wc:EmployerCounterparty {employerId: $employerId})-[]-(wba:EmployerBankAccount)
""" + _EMPLOYER_ACCOUNT_RETURN

DELETED_EMPLOYER_ACCOUNTS = """
    MATCH (wc:EmployerCounterparty {employerId: $employerId})-[]-(wba:DeletedEmployerBankAccount)
""" + _EMPLOYER_ACCOUNT_RETURN

_WORKER_ACCOUNT_RETURN = """
    RETURN wba.entityId as id, wc.employerId as employer_id, wc.workerId as worker_id,
           wba.bankName as bank_name, wba.accountNumber as account_number,
           wba.routingNumber as routing_number, wba.partyName as party_name,
           wba.createdDate as created_date
    ORDER BY wc.employerId, wc.workerId, wba.routingNumber, wba.createdDate
"""

ACTIVE_WORKER_ACCOUNTS = """
    MATCH (wc:WorkerCounterparty)-[]-(wba:WorkerBankAccount)
    WHERE wc.employerId IN $employerIds
""" + _WORKER_ACCOUNT_RETURN

DELETED_WORKER_ACCOUNTS = """
    MATCH (wc:WorkerCounterparty)-[]-(wba:DeletedWorkerBankAccount)
    WHERE wc.employerId IN $employerIds
""" + _WORKER_ACCOUNT_RETURN

_AUTHORIZER_RETURN = """
    RETURN eba.entityId as entity_id, pas.authorizerFirstName as authorizer_first_name,
           pas.authorizerLastName as authorizer_last_name, pas.authorizerEmail as authorizer_email,
           pas.clientIpAddress as client_ip_address
"""

AUTHORIZER_BATCH = (
    """
    MATCH (pas:PaymentAuthorizationSignature)-[]-(pa:PaymentAuthorization)-[]-(eba:DeletedEmployerBankAccount)
    WHERE eba.entityId IN $employerBankAccountIds
"""
    + _AUTHORIZER_RETURN
    + """
    UNION
    MATCH (pas:PaymentAuthorizationSignature)-[]-(pa:PaymentAuthorization)-[]-(eba:EmployerBankAccount)
    WHERE eba.entityId IN $employerBankAccountIds
"""
    + _AUTHORIZER_RETURN
)


class BankAccountSource(SourceAdapter):
    """Bank account and authorizer lookups in the graph database."""

    def __init__(self, connection: GraphDatabaseConnection):
        self.connection = connection

    @property
    def source_name(self) -> str:
        return "neo4j"

    def fetch_employer_bank_accounts(self, employer_id: str) -> list[EmployerBankAccount]:
        """
        Fetch active then deleted bank accounts of an employer.

        Raises:
            SourceUnavailable: If the database query fails
            SourceDataInvalid: If a row is missing required fields
        """
        logger.info(f"Fetching bank accounts for employer {employer_id}")
        params = {"employerId": employer_id}
        active = self.connection.execute_query(ACTIVE_EMPLOYER_ACCOUNTS, params)
        deleted = self.connection.execute_query(DELETED_EMPLOYER_ACCOUNTS, params)

        accounts = [
            self.parse(EmployerBankAccount, {**row, "is_deleted": False}, key=employer_id)
            for row in active
        ] + [
            self.parse(EmployerBankAccount, {**row, "is_deleted": True}, key=employer_id)
            for row in deleted
        ]
        logger.info(f"Found {len(accounts)} bank accounts for employer {employer_id}")
        return accounts

    def fetch_worker_bank_accounts(self, employer_ids: Sequence[str]) -> list[WorkerBankAccount]:
        """
        Fetch active then deleted worker bank accounts for a set of employers.

        Raises:
            SourceUnavailable: If the database query fails
        """
        params = {"employerIds": list(employer_ids)}
        active = self.connection.execute_query(ACTIVE_WORKER_ACCOUNTS, params)
        deleted = self.connection.execute_query(DELETED_WORKER_ACCOUNTS, params)
        key = ",".join(employer_ids)

        accounts = [
            self.parse(WorkerBankAccount, {**row, "is_deleted": False}, key=key)
            for row in active
        ] + [
            self.parse(WorkerBankAccount, {**row, "is_deleted": True}, key=key)
            for row in deleted
        ]
        logger.info(f"Found {len(accounts)} worker bank accounts for {len(employer_ids)} employers")
        return accounts

    def fetch_authorizers(self, account_ids: Sequence[str]) -> dict[str, AuthorizerInfo]:
        """
        Fetch authorizer information for several bank accounts in one query.

        When an account has several signatures the first row returned wins.

        Returns:
            Map of bank account id to authorizer info; accounts without a
            signature are absent

        Raises:
            SourceUnavailable: If the database query fails
        """
        if not account_ids:
            return {}

        logger.info(f"Fetching authorizer info for {len(account_ids)} bank account IDs in batch")
        rows = self.connection.execute_query(
            AUTHORIZER_BATCH, {"employerBankAccountIds": list(account_ids)}
        )

        authorizers: dict[str, AuthorizerInfo] = {}
        for row in rows:
            if not row.get("entity_id"):
                continue
            info = self.parse(AuthorizerInfo, row, key=row["entity_id"])
            authorizers.setdefault(info.entity_id, info)

        logger.debug(
            f"Found authorizer info for {len(authorizers)} out of {len(account_ids)} bank accounts"
        )
        return authorizers

    def fetch_authorizer(self, account_id: str) -> AuthorizerInfo | None:
        """
        Fetch authorizer information for one bank account.

        Errors are logged and degrade to None.
        """
        try:
            return self.fetch_authorizers([account_id]).get(account_id)
        except SourceError as e:
            logger.error(f"Error fetching authorizer info for bank account ID {account_id}: {e}")
            return None
