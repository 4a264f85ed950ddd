"""
Increase ACH transfer source.
"""

from src.core.errors import SourceDataInvalid
from src.core.models import ACHTransfer
from src.core.settings import IncreaseSettings
from src.observability.logger import get_logger
from src.sources.base import SourceAdapter
from src.sources.http_client import ApiClient

logger = get_logger(__name__)


class ACHTransferSource(SourceAdapter):
    """Looks up a single ACH transfer by id."""

    def __init__(self, settings: IncreaseSettings, client: ApiClient | None = None):
        self.settings = settings
        self.client = client or ApiClient(
            source=self.source_name,
            base_url=settings.base_url,
            headers={"Authorization": f"Bearer {settings.api_key.get_secret_value()}"},
            timeout=settings.timeout,
        )

    @property
    def source_name(self) -> str:
        return "increase"

    def fetch_one(self, ach_transfer_id: str) -> ACHTransfer:
        """
        Fetch an ACH transfer.

        Raises:
            SourceUnavailable: On transport errors or non-200 statuses
            SourceDataInvalid: If the transfer has no transaction_id
        """
        logger.debug(
            "Calling Increase ACH Transfer endpoint...",
            extra={"ach_transfer_id": ach_transfer_id},
        )
        body, _ = self.client.get_json(f"/ach_transfers/{ach_transfer_id}", key=ach_transfer_id)

        if not isinstance(body, dict) or not body.get("transaction_id"):
            raise SourceDataInvalid(
                "Invalid response format from Increase API: missing transaction_id",
                source=self.source_name,
                key=ach_transfer_id,
            )

        transfer = self.parse(ACHTransfer, body, key=ach_transfer_id)
        logger.info(
            "Successfully retrieved ACH transfer from Increase",
            extra={"ach_transfer_id": ach_transfer_id},
        )
        return transfer

    def close(self) -> None:
        self.client.close()
