"""
WorkerInfo model: normalized worker personal information.
"""

from pydantic import BaseModel


class WorkerInfo(BaseModel):
    """
    Worker personal details, flattened from the GraphQL worker queries.

    Attributes:
        worker_id: Worker id
        employer_id: Owning employer id
        employer_name: Owning employer business name
        ssn: Unmasked SSN if the worker has one on file
    """

    worker_id: str
    first_name: str
    last_name: str
    employer_id: str = ""
    employer_name: str = ""
    date_of_birth: str | None = None
    address_line1: str = ""
    address_line2: str | None = None
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    ssn: str | None = None

    class Config:
        frozen = True
