"""
Modern Treasury payment-order source.

Fetches the payment orders tagged with a payroll run id and derives the
Increase ACH transfer id referenced by each order.
"""

from requests.auth import HTTPBasicAuth

from src.core.errors import SourceDataInvalid
from src.core.models import PaymentOrder
from src.core.settings import ModernTreasurySettings
from src.observability.logger import get_logger
from src.sources.base import SourceAdapter
from src.sources.http_client import ApiClient

logger = get_logger(__name__)

ACH_TRANSFER_REFERENCE_TYPE = "bnk_dev_transfer_id"
NEXT_PAGE_HEADER = "X-After-Cursor"


def extract_ach_transfer_id(payment_order: PaymentOrder) -> str | None:
    """
    Return the ACH transfer id referenced by a payment order.

    The first reference whose type is ``bnk_dev_transfer_id`` wins; None
    means the order has no transfer to reconcile.
    """
    for reference in payment_order.reference_numbers:
        if reference.reference_number_type == ACH_TRANSFER_REFERENCE_TYPE:
            return reference.reference_number or None
    return None


class PaymentOrderSource(SourceAdapter):
    """
    Reads payment orders by payroll run id.

    Results are paged with the X-After-Cursor header; every page is read
    before returning, in the order the API returns them.
    """

    def __init__(self, settings: ModernTreasurySettings, client: ApiClient | None = None):
        self.settings = settings
        self.client = client or ApiClient(
            source=self.source_name,
            base_url=settings.base_url,
            auth=HTTPBasicAuth(settings.organization_id, settings.api_key.get_secret_value()),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            timeout=settings.timeout,
        )

    @property
    def source_name(self) -> str:
        return "modern_treasury"

    def fetch(self, payroll_run_id: str) -> list[PaymentOrder]:
        """
        Fetch all payment orders for a payroll run.

        Raises:
            SourceUnavailable: On transport errors or non-200 statuses
            SourceDataInvalid: If a page is not a list of payment orders
        """
        logger.info(
            "Calling Modern Treasury payment order endpoint...",
            extra={"payroll_run_id": payroll_run_id},
        )
        params = {
            "per_page": self.settings.page_size,
            "metadata[payrollRunId]": payroll_run_id,
        }

        orders: list[PaymentOrder] = []
        while True:
            body, response = self.client.get_json("/api/payment_orders", key=payroll_run_id, params=params)
            if not isinstance(body, list):
                raise SourceDataInvalid(
                    "Invalid response format from Modern Treasury API: expected a list",
                    source=self.source_name,
                    key=payroll_run_id,
                )
            orders.extend(self.parse_many(PaymentOrder, body, key=payroll_run_id))

            after_cursor = response.headers.get(NEXT_PAGE_HEADER)
            if not after_cursor or not body:
                break
            params = {**params, "after_cursor": after_cursor}

        logger.info(
            f"Successfully retrieved {len(orders)} payment orders from Modern Treasury",
            extra={"payroll_run_id": payroll_run_id},
        )
        return orders

    def close(self) -> None:
        self.client.close()
