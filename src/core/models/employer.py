"""
EmployerInfo model: normalized employer business information.
"""

from pydantic import BaseModel


class EmployerInfo(BaseModel):
    """Employer business details, flattened from the GraphQL employer query."""

    employer_id: str
    business_name: str
    legal_name: str | None = None
    ein: str = ""
    address_line1: str = ""
    address_line2: str | None = None
    city: str = ""
    state: str = ""
    postal_code: str = ""

    class Config:
        frozen = True
