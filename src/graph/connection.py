"""
Neo4j graph database connection management

Provides a connection resource that creates the driver lazily on first
query and releases it on close(). One resource is created per CLI command
and passed explicitly to the adapters that need it.
"""
import threading
from contextlib import contextmanager
from typing import Any

from neo4j import Driver, GraphDatabase
from neo4j.exceptions import DriverError, Neo4jError

from src.core.errors import SourceUnavailable
from src.core.settings import Neo4jSettings
from src.observability.logger import get_logger, trace
from src.observability.metrics import (
    increment_counter,
    source_request_duration_seconds,
    source_requests_total,
    track_duration,
)

logger = get_logger(__name__)

SOURCE_NAME = "neo4j"


def _to_plain(value: Any) -> Any:
    """Convert driver temporal values to ISO strings; leave others as-is."""
    iso_format = getattr(value, "iso_format", None)
    if callable(iso_format):
        return iso_format()
    return value


class GraphDatabaseConnection:
    """
    Neo4j driver resource

    The driver is created on the first query and closed by close(). The
    driver is thread-safe; each query runs in its own short-lived session.
    """

    def __init__(self, settings: Neo4jSettings, driver: Driver | None = None) -> None:
        """
        Initialize the connection resource

        Args:
            settings: Connection settings (credentials are already validated)
            driver: Optional pre-built driver (tests inject fakes here)
        """
        self.settings = settings
        self._driver: Driver | None = driver
        self._driver_lock = threading.Lock()

    @property
    def driver(self) -> Driver:
        """Get or create the driver."""
        if self._driver is None:
            with self._driver_lock:
                if self._driver is None:
                    logger.debug(f"Initializing Neo4j driver with URI: {self.settings.uri}")
                    self._driver = GraphDatabase.driver(
                        self.settings.uri,
                        auth=(self.settings.username, self.settings.password.get_secret_value()),
                    )
        return self._driver

    @property
    def is_open(self) -> bool:
        return self._driver is not None

    def close(self) -> None:
        """Close the driver if it was opened"""
        with self._driver_lock:
            if self._driver is not None:
                self._driver.close()
                self._driver = None
                logger.debug("Neo4j driver connection closed")

    @contextmanager
    def session(self):
        """
        Open a session on the configured database

        Yields:
            neo4j.Session
        """
        kwargs = {"database": self.settings.database} if self.settings.database else {}
        with self.driver.session(**kwargs) as session:
            yield session

    def execute_query(self, cypher: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """
        Execute a Cypher query and return the rows as dictionaries

        Args:
            cypher: Cypher query
            params: Query parameters

        Returns:
            List of dictionaries (one per record)

        Raises:
            SourceUnavailable: If the driver or server reports an error
        """
        params = params or {}
        trace(logger, "Executing Neo4j query", cypher=cypher, params=params)
        try:
            with track_duration(source_request_duration_seconds, source=SOURCE_NAME):
                with self.session() as session:
                    result = session.run(cypher, params)
                    rows = [
                        {k: _to_plain(v) for k, v in record.data().items()}
                        for record in result
                    ]
        except (Neo4jError, DriverError) as e:
            increment_counter(source_requests_total, source=SOURCE_NAME, outcome="unavailable")
            logger.error(f"Error executing Neo4j query: {e}")
            raise SourceUnavailable(str(e), source=SOURCE_NAME) from e

        increment_counter(source_requests_total, source=SOURCE_NAME, outcome="success")
        logger.debug(f"Neo4j query executed successfully, returned {len(rows)} records")
        return rows

    def __enter__(self):
        """Context manager entry"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.close()
        return False
