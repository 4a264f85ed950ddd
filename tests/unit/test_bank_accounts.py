"""
Unit tests for the graph database connection and bank account source
"""
import threading
import time
from unittest.mock import MagicMock, patch

import pytest
from neo4j.exceptions import ServiceUnavailable

from src.core.errors import SourceDataInvalid, SourceUnavailable
from src.core.settings import Neo4jSettings
from src.graph.connection import GraphDatabaseConnection
from src.sources import BankAccountSource
from src.sources.bank_accounts import (
    ACTIVE_EMPLOYER_ACCOUNTS,
    ACTIVE_WORKER_ACCOUNTS,
    AUTHORIZER_BATCH,
    DELETED_EMPLOYER_ACCOUNTS,
    DELETED_WORKER_ACCOUNTS,
)


def account_row(account_id, employer_id="er_1", **fields):
    return {
        "id": account_id,
        "employer_id": employer_id,
        "bank_name": "Bank",
        "account_number": "0001",
        "routing_number": "111000025",
        "party_name": "Acme",
        "created_date": "2024-01-01T00:00:00Z",
        **fields,
    }


def authorizer_row(entity_id, first_name="Ann"):
    return {
        "entity_id": entity_id,
        "authorizer_first_name": first_name,
        "authorizer_last_name": "Smith",
        "authorizer_email": "ann@example.com",
        "client_ip_address": "10.0.0.1",
    }


@pytest.fixture
def neo4j_settings():
    return Neo4jSettings(uri="bolt://neo4j.test:7687", username="neo4j", password="pw")


@pytest.mark.unit
class TestGraphDatabaseConnection:
    """Test driver lifecycle and error mapping"""

    def test_driver_is_created_lazily(self, neo4j_settings):
        with patch("src.graph.connection.GraphDatabase.driver") as make_driver:
            connection = GraphDatabaseConnection(neo4j_settings)
            assert not connection.is_open
            make_driver.assert_not_called()

            connection.driver
            connection.driver

            make_driver.assert_called_once_with("bolt://neo4j.test:7687", auth=("neo4j", "pw"))
            assert connection.is_open

    def test_close_releases_driver(self, neo4j_settings):
        driver = MagicMock()
        connection = GraphDatabaseConnection(neo4j_settings, driver=driver)

        connection.close()
        connection.close()

        driver.close.assert_called_once()
        assert not connection.is_open

    def test_execute_query_returns_plain_rows(self, neo4j_settings):
        created = MagicMock()
        created.iso_format.return_value = "2024-01-01T00:00:00Z"
        record = MagicMock()
        record.data.return_value = {"id": "eba_1", "created_date": created}

        session = MagicMock()
        session.run.return_value = [record]
        driver = MagicMock()
        driver.session.return_value.__enter__.return_value = session

        connection = GraphDatabaseConnection(neo4j_settings, driver=driver)
        rows = connection.execute_query("MATCH (n) RETURN n", {"x": 1})

        assert rows == [{"id": "eba_1", "created_date": "2024-01-01T00:00:00Z"}]
        session.run.assert_called_once_with("MATCH (n) RETURN n", {"x": 1})
        driver.session.assert_called_once_with()

    def test_database_is_selected(self):
        settings = Neo4jSettings(password="pw", database="salsa")
        driver = MagicMock()
        driver.session.return_value.__enter__.return_value.run.return_value = []

        GraphDatabaseConnection(settings, driver=driver).execute_query("RETURN 1")

        driver.session.assert_called_once_with(database="salsa")

    def test_driver_error_is_unavailable(self, neo4j_settings):
        driver = MagicMock()
        driver.session.side_effect = ServiceUnavailable("no route")

        connection = GraphDatabaseConnection(neo4j_settings, driver=driver)

        with pytest.raises(SourceUnavailable) as exc_info:
            connection.execute_query("RETURN 1")

        assert exc_info.value.source == "neo4j"

    def test_concurrent_first_query_creates_one_driver(self, neo4j_settings):
        created = []

        def slow_driver(*args, **kwargs):
            time.sleep(0.05)
            driver = MagicMock()
            driver.session.return_value.__enter__.return_value.run.return_value = []
            created.append(driver)
            return driver

        connection = GraphDatabaseConnection(neo4j_settings)
        with patch("src.graph.connection.GraphDatabase.driver", side_effect=slow_driver):
            threads = [threading.Thread(target=connection.execute_query, args=("RETURN 1",)) for _ in range(4)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

        assert len(created) == 1
        connection.close()
        created[0].close.assert_called_once()

    def test_context_manager_closes(self, neo4j_settings):
        driver = MagicMock()
        with GraphDatabaseConnection(neo4j_settings, driver=driver):
            pass
        driver.close.assert_called_once()


@pytest.mark.unit
class TestBankAccountSource:
    """Test bank account and authorizer queries"""

    def test_employer_accounts_active_then_deleted(self, graph_connection):
        graph_connection.on(DELETED_EMPLOYER_ACCOUNTS, [account_row("eba_3")])
        graph_connection.on(ACTIVE_EMPLOYER_ACCOUNTS, [account_row("eba_1"), account_row("eba_2")])

        accounts = BankAccountSource(graph_connection).fetch_employer_bank_accounts("er_1")

        assert [a.id for a in accounts] == ["eba_1", "eba_2", "eba_3"]
        assert [a.is_deleted for a in accounts] == [False, False, True]
        assert all(params == {"employerId": "er_1"} for _, params in graph_connection.calls)

    def test_employer_account_without_employer_is_invalid(self, graph_connection):
        graph_connection.on(ACTIVE_EMPLOYER_ACCOUNTS, [account_row("eba_1", employer_id=None)])

        with pytest.raises(SourceDataInvalid):
            BankAccountSource(graph_connection).fetch_employer_bank_accounts("er_1")

    def test_worker_accounts(self, graph_connection):
        graph_connection.on(ACTIVE_WORKER_ACCOUNTS, [account_row("wba_1", worker_id="wr_1")])
        graph_connection.on(DELETED_WORKER_ACCOUNTS, [account_row("wba_2", worker_id="wr_2")])

        accounts = BankAccountSource(graph_connection).fetch_worker_bank_accounts(["er_1"])

        assert [(a.worker_id, a.is_deleted) for a in accounts] == [("wr_1", False), ("wr_2", True)]
        assert graph_connection.calls[0][1] == {"employerIds": ["er_1"]}

    def test_authorizers_first_row_wins(self, graph_connection):
        graph_connection.on(
            AUTHORIZER_BATCH,
            [
                authorizer_row("eba_1", first_name="First"),
                authorizer_row("eba_1", first_name="Second"),
                authorizer_row("eba_2"),
                {"entity_id": None, "authorizer_first_name": "Orphan"},
            ],
        )

        authorizers = BankAccountSource(graph_connection).fetch_authorizers(["eba_1", "eba_2", "eba_3"])

        assert set(authorizers) == {"eba_1", "eba_2"}
        assert authorizers["eba_1"].authorizer_first_name == "First"
        assert graph_connection.calls[0][1] == {"employerBankAccountIds": ["eba_1", "eba_2", "eba_3"]}

    def test_authorizers_for_no_accounts(self, graph_connection):
        assert BankAccountSource(graph_connection).fetch_authorizers([]) == {}
        assert graph_connection.calls == []

    def test_single_authorizer_degrades_on_error(self, graph_connection):
        graph_connection.on(AUTHORIZER_BATCH, SourceUnavailable("down", source="neo4j"))

        assert BankAccountSource(graph_connection).fetch_authorizer("eba_1") is None

    def test_single_authorizer(self, graph_connection):
        graph_connection.on(AUTHORIZER_BATCH, [authorizer_row("eba_1")])

        info = BankAccountSource(graph_connection).fetch_authorizer("eba_1")

        assert info.client_ip_address == "10.0.0.1"
