"""
Salsa GraphQL entity source.

Employer and worker lookups against the Salsa GraphQL API. Each query shape
has its own response model (see src/core/models/graphql.py) and its own
adapter operation:

- fetch_employer(employer_id)             -> EmployerInfo
- fetch_worker(worker_id)                 -> WorkerInfo
- fetch_workers_for_employer(employer_id) -> list[WorkerInfo]
"""

from typing import Any

from src.core.errors import SourceDataInvalid, SourceUnavailable
from src.core.models import EmployerInfo, WorkerInfo
from src.core.models.graphql import (
    EmployerQueryResult,
    EmployerWorkersQueryResult,
    GovernmentIdentifier,
    JurisdictionTaxSetup,
    PersonalInformation,
    PostalAddress,
    WorkerQueryResult,
)
from src.core.settings import SalsaSettings
from src.observability.logger import get_logger
from src.sources.base import SourceAdapter
from src.sources.http_client import ApiClient

logger = get_logger(__name__)

FEIN_TYPE_ID = "key:taxid:us:fein"
SSN_TYPE_ID = "key:wrgovid:us:ssn"

_ADDRESS_FIELDS = """
              addressLine1
              addressLine2
              locality
              postalCode
              administrativeArea
              country
"""

_PERSONAL_INFORMATION = f"""
          personalInformation {{
            dateOfBirth
            homeAddress {{
              id
              address {{{_ADDRESS_FIELDS}              }}
            }}
            governmentIdentifiers {{
              id
              value(unmasked: true)
              type {{
                id
                name
              }}
            }}
          }}
"""

EMPLOYER_QUERY = """
    query Employer($id: ID!) {
      employer(id: $id) {
        id
        businessName
        legalName
        taxesSetupByJurisdiction {
          taxIdentifiers {
            id
            type {
              id
              name
            }
            value
          }
        }
        filingAddress {
          address {
            addressLine1
            addressLine2
            administrativeArea
            locality
            postalCode
          }
        }
      }
    }
"""

WORKER_QUERY = f"""
    query Worker($id: ID!) {{
      worker(id: $id) {{
        id
        firstName
        lastName
        employer {{
          id
          businessName
        }}{_PERSONAL_INFORMATION}      }}
    }}
"""

EMPLOYER_WORKERS_QUERY = f"""
    query EmployerWorkers($id: ID!) {{
      employer(id: $id) {{
        id
        businessName
        workers {{
          id
          firstName
          lastName{_PERSONAL_INFORMATION}        }}
      }}
    }}
"""


def extract_ein(jurisdictions: list[JurisdictionTaxSetup]) -> str:
    """First non-empty FEIN across all jurisdictions, or ""."""
    for jurisdiction in jurisdictions:
        for tax_id in jurisdiction.tax_identifiers:
            if tax_id.type.id == FEIN_TYPE_ID and tax_id.value:
                return tax_id.value
    return ""


def extract_ssn(identifiers: list[GovernmentIdentifier]) -> str | None:
    """First non-empty SSN among a worker's government identifiers."""
    for identifier in identifiers:
        if identifier.type.id == SSN_TYPE_ID and identifier.value:
            return identifier.value
    return None


def format_address(address: PostalAddress | None) -> dict[str, Any]:
    """
    Flatten a postal address.

    locality becomes city and the administrative area is upper-cased into
    state. A missing address yields empty strings.
    """
    if address is None:
        return {
            "address_line1": "",
            "address_line2": None,
            "city": "",
            "state": "",
            "postal_code": "",
            "country": "",
        }
    return {
        "address_line1": address.address_line1 or "",
        "address_line2": address.address_line2,
        "city": address.locality or "",
        "state": (address.administrative_area or "").upper(),
        "postal_code": address.postal_code or "",
        "country": address.country or "",
    }


def _personal_fields(info: PersonalInformation | None) -> dict[str, Any]:
    if info is None:
        return {"date_of_birth": None, "ssn": None, **format_address(None)}
    home = info.home_address.address if info.home_address else None
    return {
        "date_of_birth": info.date_of_birth,
        "ssn": extract_ssn(info.government_identifiers),
        **format_address(home),
    }


class SalsaGraphQLClient:
    """
    Executes GraphQL queries against the Salsa API.

    A response with a non-empty "errors" array is treated as a failed
    request; a response without "data" is invalid.
    """

    source_name = "salsa_graphql"

    def __init__(self, settings: SalsaSettings, client: ApiClient | None = None):
        self.settings = settings
        self.client = client or ApiClient(
            source=self.source_name,
            base_url=settings.api_url,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {settings.auth_token.get_secret_value()}",
            },
            timeout=settings.timeout,
        )

    def execute(self, query: str, variables: dict[str, Any] | None = None, key: str | None = None) -> dict:
        """
        Execute a query and return its "data" object.

        Raises:
            SourceUnavailable: On transport errors, non-200 statuses or GraphQL errors
            SourceDataInvalid: If the response has no "data"
        """
        logger.debug("Executing Salsa GraphQL query...", extra={"key": key})
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        try:
            body = self.client.post_json("", payload, key=key)
        except SourceUnavailable as e:
            if e.status == 401:
                raise SourceUnavailable(
                    "Authentication failed: Please check your SALSA_AUTH_TOKEN environment variable",
                    source=self.source_name,
                    key=key,
                    status=401,
                ) from e
            raise

        if not isinstance(body, dict):
            raise SourceDataInvalid(
                "Invalid response format from Salsa API", source=self.source_name, key=key
            )

        errors = body.get("errors") or []
        if errors:
            messages = ", ".join(str(err.get("message", err)) for err in errors)
            logger.error(f"Salsa GraphQL returned errors: {messages}", extra={"key": key})
            raise SourceUnavailable(
                f"Salsa GraphQL errors: {messages}", source=self.source_name, key=key
            )

        data = body.get("data")
        if not data:
            raise SourceDataInvalid(
                "Invalid response format from Salsa API: missing data",
                source=self.source_name,
                key=key,
            )

        logger.debug("Successfully executed Salsa GraphQL query", extra={"key": key})
        return data

    def close(self) -> None:
        self.client.close()


class EntitySource(SourceAdapter):
    """Employer and worker lookups by entity id."""

    def __init__(self, graphql: SalsaGraphQLClient):
        self.graphql = graphql

    @property
    def source_name(self) -> str:
        return "salsa_graphql"

    def fetch_employer(self, employer_id: str) -> EmployerInfo:
        """
        Fetch an employer's business information.

        Raises:
            SourceDataInvalid: If the employer does not exist
        """
        data = self.graphql.execute(EMPLOYER_QUERY, {"id": employer_id}, key=employer_id)
        result = self.parse(EmployerQueryResult, data, key=employer_id)
        employer = result.employer
        if employer is None:
            raise SourceDataInvalid(
                f"Employer not found with ID: {employer_id}",
                source=self.source_name,
                key=employer_id,
            )

        filing = employer.filing_address.address if employer.filing_address else None
        address = format_address(filing)
        logger.debug("Formatted employer address", extra={"employer_id": employer_id, **address})

        return EmployerInfo(
            employer_id=employer.id,
            business_name=employer.business_name,
            legal_name=employer.legal_name,
            ein=extract_ein(employer.taxes_setup_by_jurisdiction),
            address_line1=address["address_line1"],
            address_line2=address["address_line2"],
            city=address["city"],
            state=address["state"],
            postal_code=address["postal_code"],
        )

    def fetch_worker(self, worker_id: str) -> WorkerInfo:
        """
        Fetch a single worker.

        Raises:
            SourceDataInvalid: If the worker does not exist
        """
        data = self.graphql.execute(WORKER_QUERY, {"id": worker_id}, key=worker_id)
        result = self.parse(WorkerQueryResult, data, key=worker_id)
        worker = result.worker
        if worker is None:
            raise SourceDataInvalid(
                f"Worker not found with ID: {worker_id}",
                source=self.source_name,
                key=worker_id,
            )

        return WorkerInfo(
            worker_id=worker.id,
            first_name=worker.first_name,
            last_name=worker.last_name,
            employer_id=worker.employer.id,
            employer_name=worker.employer.business_name or "",
            **_personal_fields(worker.personal_information),
        )

    def fetch_workers_for_employer(self, employer_id: str) -> list[WorkerInfo]:
        """
        Fetch every worker of an employer, in API order.

        Raises:
            SourceDataInvalid: If the employer does not exist or has no worker list
        """
        data = self.graphql.execute(EMPLOYER_WORKERS_QUERY, {"id": employer_id}, key=employer_id)
        result = self.parse(EmployerWorkersQueryResult, data, key=employer_id)
        employer = result.employer
        if employer is None or employer.workers is None:
            raise SourceDataInvalid(
                f"Employer not found with ID: {employer_id} or has no workers",
                source=self.source_name,
                key=employer_id,
            )

        return [
            WorkerInfo(
                worker_id=worker.id,
                first_name=worker.first_name,
                last_name=worker.last_name,
                employer_id=employer.id,
                employer_name=employer.business_name or "",
                **_personal_fields(worker.personal_information),
            )
            for worker in employer.workers
        ]
