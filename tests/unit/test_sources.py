"""
Unit tests for the REST and GraphQL source adapters

HTTP traffic is served by a fake requests session.
"""
import pytest
from hypothesis import given
from hypothesis import strategies as st

from src.core.errors import SourceDataInvalid, SourceUnavailable
from src.core.models import PaymentOrder, PaymentReference
from src.core.models.graphql import PostalAddress
from src.core.settings import IncreaseSettings, ModernTreasurySettings, SalsaSettings
from src.sources import (
    ACHTransferSource,
    ApiClient,
    EntitySource,
    PaymentOrderSource,
    SalsaGraphQLClient,
    extract_ach_transfer_id,
)
from src.sources.salsa_graphql import (
    EMPLOYER_QUERY,
    EMPLOYER_WORKERS_QUERY,
    WORKER_QUERY,
    format_address,
)


def order_payload(order_id, transfer_id=None, amount=1000, direction="credit"):
    references = []
    if transfer_id is not None:
        references.append(
            {
                "id": f"ref_{order_id}",
                "reference_number": transfer_id,
                "reference_number_type": "bnk_dev_transfer_id",
            }
        )
    return {
        "id": order_id,
        "type": "ach",
        "amount": amount,
        "direction": direction,
        "effective_date": "2025-01-15",
        "reference_numbers": references,
    }


def make_order(*references):
    return PaymentOrder(
        id="po_1",
        amount=1,
        direction="credit",
        effective_date="2025-01-15",
        reference_numbers=tuple(
            PaymentReference(id=f"r{i}", reference_number=number, reference_number_type=kind)
            for i, (kind, number) in enumerate(references)
        ),
    )


# =======================
# MODERN TREASURY
# =======================

@pytest.fixture
def payment_orders(fake_session):
    settings = ModernTreasurySettings(organization_id="org_test", api_key="key", page_size=2)
    client = ApiClient(source="modern_treasury", base_url=settings.base_url, session=fake_session)
    return PaymentOrderSource(settings, client=client)


@pytest.mark.unit
class TestExtractAchTransferId:
    """Test deriving the ACH transfer id from payment order references"""

    def test_transfer_reference(self):
        order = make_order(("bnk_dev_transfer_id", "ach_1"))
        assert extract_ach_transfer_id(order) == "ach_1"

    def test_first_matching_reference_wins(self):
        order = make_order(
            ("ach_trace_number", "123"),
            ("bnk_dev_transfer_id", "ach_1"),
            ("bnk_dev_transfer_id", "ach_2"),
        )
        assert extract_ach_transfer_id(order) == "ach_1"

    def test_no_transfer_reference(self):
        assert extract_ach_transfer_id(make_order(("ach_trace_number", "123"))) is None
        assert extract_ach_transfer_id(make_order()) is None

    @given(st.lists(st.tuples(st.sampled_from(["bnk_dev_transfer_id", "ach_trace_number", "other"]), st.text(min_size=1))))
    def test_result_is_a_transfer_reference_or_none(self, references):
        order = make_order(*references)
        transfer_id = extract_ach_transfer_id(order)
        transfer_numbers = [n for kind, n in references if kind == "bnk_dev_transfer_id"]
        if transfer_numbers:
            assert transfer_id == transfer_numbers[0]
        else:
            assert transfer_id is None


@pytest.mark.unit
class TestPaymentOrderSource:
    """Test fetching payment orders of a payroll run"""

    def test_single_page(self, payment_orders, fake_session, make_response):
        fake_session.request.return_value = make_response(
            200, [order_payload("po_1", "ach_1"), order_payload("po_2")]
        )

        orders = payment_orders.fetch("payrun_1")

        assert [o.id for o in orders] == ["po_1", "po_2"]
        args, kwargs = fake_session.request.call_args
        assert args == ("GET", "https://app.moderntreasury.com/api/payment_orders")
        assert kwargs["params"] == {"per_page": 2, "metadata[payrollRunId]": "payrun_1"}

    def test_follows_after_cursor(self, payment_orders, fake_session, make_response):
        fake_session.request.side_effect = [
            make_response(200, [order_payload("po_1"), order_payload("po_2")], {"X-After-Cursor": "cur_1"}),
            make_response(200, [order_payload("po_3")]),
        ]

        orders = payment_orders.fetch("payrun_1")

        assert [o.id for o in orders] == ["po_1", "po_2", "po_3"]
        second_params = fake_session.request.call_args_list[1].kwargs["params"]
        assert second_params["after_cursor"] == "cur_1"
        assert second_params["metadata[payrollRunId]"] == "payrun_1"

    def test_empty_run(self, payment_orders, fake_session, make_response):
        fake_session.request.return_value = make_response(200, [])
        assert payment_orders.fetch("payrun_empty") == []

    def test_non_list_body_is_invalid(self, payment_orders, fake_session, make_response):
        fake_session.request.return_value = make_response(200, {"orders": []})

        with pytest.raises(SourceDataInvalid, match="expected a list") as exc_info:
            payment_orders.fetch("payrun_1")

        assert exc_info.value.key == "payrun_1"

    def test_malformed_order_is_invalid(self, payment_orders, fake_session, make_response):
        fake_session.request.return_value = make_response(200, [{"id": "po_1"}])

        with pytest.raises(SourceDataInvalid, match="modern_treasury"):
            payment_orders.fetch("payrun_1")

    def test_server_error_is_unavailable(self, payment_orders, fake_session, make_response):
        fake_session.request.return_value = make_response(500, {"error": "down"})

        with pytest.raises(SourceUnavailable):
            payment_orders.fetch("payrun_1")

    def test_basic_auth_uses_organization_credentials(self):
        source = PaymentOrderSource(ModernTreasurySettings(organization_id="org_x", api_key="secret"))
        assert source.client.auth.username == "org_x"
        assert source.client.auth.password == "secret"


# =======================
# INCREASE
# =======================

@pytest.fixture
def ach_transfers(fake_session):
    settings = IncreaseSettings(api_key="inc_key")
    client = ApiClient(source="increase", base_url=settings.base_url, session=fake_session)
    return ACHTransferSource(settings, client=client)


@pytest.mark.unit
class TestACHTransferSource:
    """Test single ACH transfer lookups"""

    def test_fetch_one(self, ach_transfers, fake_session, make_response):
        fake_session.request.return_value = make_response(
            200, {"id": "ach_1", "amount": 1000, "transaction_id": "txn_1", "status": "submitted"}
        )

        transfer = ach_transfers.fetch_one("ach_1")

        assert transfer.transaction_id == "txn_1"
        args, _ = fake_session.request.call_args
        assert args == ("GET", "https://api.increase.com/ach_transfers/ach_1")

    def test_missing_transaction_id_is_invalid(self, ach_transfers, fake_session, make_response):
        fake_session.request.return_value = make_response(200, {"id": "ach_1", "amount": 1000})

        with pytest.raises(SourceDataInvalid, match="transaction_id"):
            ach_transfers.fetch_one("ach_1")

    def test_not_found_is_unavailable(self, ach_transfers, fake_session, make_response):
        fake_session.request.return_value = make_response(404, {"type": "not_found"})

        with pytest.raises(SourceUnavailable) as exc_info:
            ach_transfers.fetch_one("ach_missing")

        assert exc_info.value.status == 404
        assert exc_info.value.key == "ach_missing"

    def test_bearer_token_header(self):
        source = ACHTransferSource(IncreaseSettings(api_key="inc_key"))
        assert source.client.headers["Authorization"] == "Bearer inc_key"


# =======================
# SALSA GRAPHQL
# =======================

@pytest.fixture
def graphql(fake_session):
    settings = SalsaSettings(api_url="https://salsa.test/api/graphql", auth_token="tok")
    graphql = SalsaGraphQLClient(settings)
    graphql.client._session = fake_session
    return graphql


@pytest.fixture
def entities(graphql):
    return EntitySource(graphql)


ADDRESS = {
    "addressLine1": "1 Main St",
    "addressLine2": None,
    "locality": "Springfield",
    "postalCode": "12345",
    "administrativeArea": "il",
    "country": "US",
}


def personal_information(ssn="123-45-6789"):
    identifiers = [{"id": "gid_0", "value": "X1", "type": {"id": "key:wrgovid:us:itin", "name": "ITIN"}}]
    if ssn is not None:
        identifiers.append({"id": "gid_1", "value": ssn, "type": {"id": "key:wrgovid:us:ssn", "name": "SSN"}})
    return {
        "dateOfBirth": "1990-02-03",
        "homeAddress": {"id": "addr_1", "address": ADDRESS},
        "governmentIdentifiers": identifiers,
    }


@pytest.mark.unit
class TestSalsaGraphQLClient:
    """Test GraphQL execution and error mapping"""

    def test_returns_data(self, graphql, fake_session, make_response):
        fake_session.request.return_value = make_response(200, {"data": {"employer": {"id": "er_1"}}})

        data = graphql.execute(EMPLOYER_QUERY, {"id": "er_1"}, key="er_1")

        assert data == {"employer": {"id": "er_1"}}
        args, kwargs = fake_session.request.call_args
        assert args == ("POST", "https://salsa.test/api/graphql")
        assert kwargs["json"] == {"query": EMPLOYER_QUERY, "variables": {"id": "er_1"}}
        assert kwargs["headers"]["Authorization"] == "Bearer tok"

    def test_graphql_errors_are_unavailable(self, graphql, fake_session, make_response):
        fake_session.request.return_value = make_response(
            200, {"errors": [{"message": "first"}, {"message": "second"}], "data": None}
        )

        with pytest.raises(SourceUnavailable, match="Salsa GraphQL errors: first, second"):
            graphql.execute(EMPLOYER_QUERY, {"id": "er_1"})

    def test_missing_data_is_invalid(self, graphql, fake_session, make_response):
        fake_session.request.return_value = make_response(200, {})

        with pytest.raises(SourceDataInvalid, match="missing data"):
            graphql.execute(EMPLOYER_QUERY, {"id": "er_1"})

    def test_unauthorized_hints_at_token(self, graphql, fake_session, make_response):
        fake_session.request.return_value = make_response(401, {"message": "unauthorized"})

        with pytest.raises(SourceUnavailable, match="SALSA_AUTH_TOKEN") as exc_info:
            graphql.execute(EMPLOYER_QUERY, {"id": "er_1"})

        assert exc_info.value.status == 401


@pytest.mark.unit
class TestFormatAddress:
    """Test address flattening"""

    def test_full_address(self):
        address = PostalAddress.model_validate(ADDRESS)
        assert format_address(address) == {
            "address_line1": "1 Main St",
            "address_line2": None,
            "city": "Springfield",
            "state": "IL",
            "postal_code": "12345",
            "country": "US",
        }

    def test_missing_address(self):
        flattened = format_address(None)
        assert flattened["address_line1"] == ""
        assert flattened["state"] == ""


@pytest.mark.unit
class TestEntitySource:
    """Test employer and worker mapping"""

    def test_fetch_employer(self, entities, fake_session, make_response):
        fake_session.request.return_value = make_response(
            200,
            {
                "data": {
                    "employer": {
                        "id": "er_1",
                        "businessName": "Acme",
                        "legalName": "Acme LLC",
                        "taxesSetupByJurisdiction": [
                            {"taxIdentifiers": [{"id": "t0", "type": {"id": "key:taxid:us:ca:sit"}, "value": "CA-1"}]},
                            {"taxIdentifiers": [{"id": "t1", "type": {"id": "key:taxid:us:fein"}, "value": "12-3456789"}]},
                        ],
                        "filingAddress": {"address": ADDRESS},
                    }
                }
            },
        )

        employer = entities.fetch_employer("er_1")

        assert employer.business_name == "Acme"
        assert employer.ein == "12-3456789"
        assert employer.city == "Springfield"
        assert employer.state == "IL"

    def test_employer_without_fein_or_address(self, entities, fake_session, make_response):
        fake_session.request.return_value = make_response(
            200, {"data": {"employer": {"id": "er_1", "businessName": "Acme"}}}
        )

        employer = entities.fetch_employer("er_1")

        assert employer.ein == ""
        assert employer.address_line1 == ""

    def test_employer_not_found(self, entities, fake_session, make_response):
        fake_session.request.return_value = make_response(200, {"data": {"employer": None}})

        with pytest.raises(SourceDataInvalid, match="Employer not found with ID: er_missing"):
            entities.fetch_employer("er_missing")

    def test_fetch_worker(self, entities, fake_session, make_response):
        fake_session.request.return_value = make_response(
            200,
            {
                "data": {
                    "worker": {
                        "id": "wr_1",
                        "firstName": "Ada",
                        "lastName": "Lovelace",
                        "employer": {"id": "er_1", "businessName": "Acme"},
                        "personalInformation": personal_information(),
                    }
                }
            },
        )

        worker = entities.fetch_worker("wr_1")

        assert worker.employer_id == "er_1"
        assert worker.employer_name == "Acme"
        assert worker.ssn == "123-45-6789"
        assert worker.date_of_birth == "1990-02-03"
        assert worker.state == "IL"
        assert fake_session.request.call_args.kwargs["json"]["query"] == WORKER_QUERY

    def test_worker_not_found(self, entities, fake_session, make_response):
        fake_session.request.return_value = make_response(200, {"data": {"worker": None}})

        with pytest.raises(SourceDataInvalid, match="Worker not found with ID: wr_missing"):
            entities.fetch_worker("wr_missing")

    def test_fetch_workers_for_employer(self, entities, fake_session, make_response):
        fake_session.request.return_value = make_response(
            200,
            {
                "data": {
                    "employer": {
                        "id": "er_1",
                        "businessName": "Acme",
                        "workers": [
                            {"id": "wr_1", "firstName": "Ada", "lastName": "L", "personalInformation": personal_information()},
                            {"id": "wr_2", "firstName": "Bob", "lastName": "M", "personalInformation": personal_information(ssn=None)},
                            {"id": "wr_3", "firstName": "Cy", "lastName": "N"},
                        ],
                    }
                }
            },
        )

        workers = entities.fetch_workers_for_employer("er_1")

        assert [w.worker_id for w in workers] == ["wr_1", "wr_2", "wr_3"]
        assert all(w.employer_id == "er_1" and w.employer_name == "Acme" for w in workers)
        assert workers[1].ssn is None
        assert workers[2].address_line1 == ""
        assert fake_session.request.call_args.kwargs["json"]["query"] == EMPLOYER_WORKERS_QUERY

    def test_employer_without_worker_list(self, entities, fake_session, make_response):
        fake_session.request.return_value = make_response(
            200, {"data": {"employer": {"id": "er_1", "businessName": "Acme"}}}
        )

        with pytest.raises(SourceDataInvalid, match="has no workers"):
            entities.fetch_workers_for_employer("er_1")

    def test_graphql_error_propagates(self, entities, fake_session, make_response):
        fake_session.request.return_value = make_response(200, {"errors": [{"message": "denied"}]})

        with pytest.raises(SourceUnavailable, match="denied"):
            entities.fetch_employer("er_1")
