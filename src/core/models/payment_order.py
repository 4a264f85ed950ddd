"""
Payment order models returned by the Modern Treasury API.
"""

from pydantic import BaseModel, Field


class PaymentReference(BaseModel):
    """
    A reference number attached to a payment order.

    Attributes:
        id: Reference identifier
        reference_number: The reference value (e.g. a bank transfer id)
        reference_number_type: Type tag identifying what the reference points to
        referenceable_id: Id of the object the reference belongs to
        referenceable_type: Type of the object the reference belongs to
    """

    id: str
    reference_number: str
    reference_number_type: str
    referenceable_id: str | None = None
    referenceable_type: str | None = None

    class Config:
        frozen = True


class PaymentOrder(BaseModel):
    """
    A payment order within a payroll run.

    Attributes:
        id: Payment order id
        type: Payment type (e.g. "ach")
        amount: Amount in the smallest currency unit
        direction: "credit" or "debit"
        effective_date: Date the payment takes effect (YYYY-MM-DD, kept verbatim)
        reference_numbers: Ordered list of references
    """

    id: str = Field(..., min_length=1)
    type: str | None = None
    amount: int
    direction: str
    effective_date: str
    reference_numbers: tuple[PaymentReference, ...] = ()

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "2a6d6c4e-7f51-4b2b-9a4f-0b1d2f3e4a5b",
                "type": "ach",
                "amount": 125000,
                "direction": "credit",
                "effective_date": "2025-01-15",
                "reference_numbers": [
                    {
                        "id": "b1c2d3e4",
                        "reference_number": "ach_transfer_abc123",
                        "reference_number_type": "bnk_dev_transfer_id",
                    }
                ],
            }
        }
