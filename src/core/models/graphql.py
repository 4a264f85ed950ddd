"""
Response shapes of the Salsa GraphQL queries.

One model per query shape (employer-only, worker-only, employer-with-workers),
mirroring the selection sets in src/sources/salsa_graphql.py. Field names
follow the API's camelCase through aliases.
"""

from pydantic import BaseModel, Field


class _ApiModel(BaseModel):
    class Config:
        populate_by_name = True
        frozen = True


class IdentifierType(_ApiModel):
    id: str
    name: str | None = None


class TaxIdentifier(_ApiModel):
    id: str | None = None
    type: IdentifierType
    value: str | None = None


class JurisdictionTaxSetup(_ApiModel):
    tax_identifiers: list[TaxIdentifier] = Field(default_factory=list, alias="taxIdentifiers")


class PostalAddress(_ApiModel):
    address_line1: str | None = Field(None, alias="addressLine1")
    address_line2: str | None = Field(None, alias="addressLine2")
    locality: str | None = None
    administrative_area: str | None = Field(None, alias="administrativeArea")
    postal_code: str | None = Field(None, alias="postalCode")
    country: str | None = None


class AddressHolder(_ApiModel):
    id: str | None = None
    address: PostalAddress | None = None


class GovernmentIdentifier(_ApiModel):
    id: str | None = None
    value: str | None = None
    type: IdentifierType


class PersonalInformation(_ApiModel):
    date_of_birth: str | None = Field(None, alias="dateOfBirth")
    home_address: AddressHolder | None = Field(None, alias="homeAddress")
    government_identifiers: list[GovernmentIdentifier] = Field(
        default_factory=list, alias="governmentIdentifiers"
    )


class EmployerRef(_ApiModel):
    id: str
    business_name: str | None = Field(None, alias="businessName")


# Employer-only query shape

class EmployerNode(_ApiModel):
    id: str
    business_name: str = Field(..., alias="businessName")
    legal_name: str | None = Field(None, alias="legalName")
    taxes_setup_by_jurisdiction: list[JurisdictionTaxSetup] = Field(
        default_factory=list, alias="taxesSetupByJurisdiction"
    )
    filing_address: AddressHolder | None = Field(None, alias="filingAddress")


class EmployerQueryResult(_ApiModel):
    employer: EmployerNode | None = None


# Worker-only query shape

class WorkerNode(_ApiModel):
    id: str
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    employer: EmployerRef
    personal_information: PersonalInformation | None = Field(None, alias="personalInformation")


class WorkerQueryResult(_ApiModel):
    worker: WorkerNode | None = None


# Employer-with-workers query shape

class EmployerWorkerNode(_ApiModel):
    id: str
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    personal_information: PersonalInformation | None = Field(None, alias="personalInformation")


class EmployerWithWorkersNode(_ApiModel):
    id: str
    business_name: str | None = Field(None, alias="businessName")
    workers: list[EmployerWorkerNode] | None = None


class EmployerWorkersQueryResult(_ApiModel):
    employer: EmployerWithWorkersNode | None = None
