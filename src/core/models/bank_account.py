"""
Bank account and payment-authorization models read from the graph database.
"""

from pydantic import BaseModel


class EmployerBankAccount(BaseModel):
    """
    An employer bank account (active or deleted).

    Attributes:
        id: Bank account entity id (may be missing on legacy nodes)
        employer_id: Owning employer id
        is_deleted: True when read from a DeletedEmployerBankAccount node
    """

    id: str | None = None
    employer_id: str
    bank_name: str | None = None
    account_number: str | None = None
    routing_number: str | None = None
    party_name: str | None = None
    created_date: str | None = None
    is_deleted: bool = False

    class Config:
        frozen = True


class WorkerBankAccount(BaseModel):
    """A worker bank account (active or deleted)."""

    id: str | None = None
    employer_id: str | None = None
    worker_id: str | None = None
    bank_name: str | None = None
    account_number: str | None = None
    routing_number: str | None = None
    party_name: str | None = None
    created_date: str | None = None
    is_deleted: bool = False

    class Config:
        frozen = True


class AuthorizerInfo(BaseModel):
    """
    The person who authorized a bank account linkage.

    Attributes:
        entity_id: Bank account entity id the authorization belongs to
        client_ip_address: IP address recorded with the signature
    """

    entity_id: str
    authorizer_first_name: str | None = None
    authorizer_last_name: str | None = None
    authorizer_email: str | None = None
    client_ip_address: str | None = None

    class Config:
        frozen = True
