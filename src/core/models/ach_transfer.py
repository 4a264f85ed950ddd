"""
ACH transfer model returned by the Increase API.
"""

from pydantic import BaseModel, Field


class ACHTransfer(BaseModel):
    """
    An ACH transfer in the transaction-tracking system.

    Attributes:
        id: ACH transfer id
        amount: Amount in cents
        transaction_id: Id of the settled transaction (required)
    """

    id: str
    amount: int
    transaction_id: str = Field(..., min_length=1)

    class Config:
        frozen = True
