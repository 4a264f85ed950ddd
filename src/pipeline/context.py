"""
Run context: the resources one CLI command works with.

Adapters are created on first use, so settings for a system are read (and
missing credentials reported) only when a command actually needs it. The
graph database connection is owned by the context and released by close().
"""

from pathlib import Path

from src.core.settings import (
    IncreaseSettings,
    ModernTreasurySettings,
    Neo4jSettings,
    SalsaSettings,
)
from src.graph.connection import GraphDatabaseConnection
from src.pipeline.join_engine import FailurePolicy
from src.sinks.csv_sink import CsvRecordSink
from src.sources import (
    ACHTransferSource,
    BankAccountSource,
    EntitySource,
    PaymentOrderSource,
    SalsaGraphQLClient,
)


class ReconContext:
    """
    Resources and options shared by the pipelines of one command.

    Args:
        output_dir: Directory report files are written to
        policy: Failure policy for every pipeline
        workers: Keys processed concurrently per pipeline
    """

    def __init__(
        self,
        output_dir: str | Path = "output",
        policy: FailurePolicy = FailurePolicy.ISOLATE,
        workers: int = 1,
    ):
        self.output_dir = Path(output_dir)
        self.policy = policy
        self.workers = workers
        self._payment_orders: PaymentOrderSource | None = None
        self._ach_transfers: ACHTransferSource | None = None
        self._entities: EntitySource | None = None
        self._graph: GraphDatabaseConnection | None = None
        self._bank_accounts: BankAccountSource | None = None

    @property
    def payment_orders(self) -> PaymentOrderSource:
        if self._payment_orders is None:
            self._payment_orders = PaymentOrderSource(ModernTreasurySettings.from_env())
        return self._payment_orders

    @property
    def ach_transfers(self) -> ACHTransferSource:
        if self._ach_transfers is None:
            self._ach_transfers = ACHTransferSource(IncreaseSettings.from_env())
        return self._ach_transfers

    @property
    def entities(self) -> EntitySource:
        if self._entities is None:
            self._entities = EntitySource(SalsaGraphQLClient(SalsaSettings.from_env()))
        return self._entities

    @property
    def graph(self) -> GraphDatabaseConnection:
        if self._graph is None:
            self._graph = GraphDatabaseConnection(Neo4jSettings.from_env())
        return self._graph

    @property
    def bank_accounts(self) -> BankAccountSource:
        if self._bank_accounts is None:
            self._bank_accounts = BankAccountSource(self.graph)
        return self._bank_accounts

    def sink_for(self, filename: str) -> CsvRecordSink:
        return CsvRecordSink(self.output_dir / filename)

    def close_graph(self) -> None:
        """Release the graph database driver; a later query reopens it."""
        if self._graph is not None:
            self._graph.close()

    def close(self) -> None:
        """Release every resource opened so far."""
        self.close_graph()
        for adapter in (self._payment_orders, self._ach_transfers):
            if adapter is not None:
                adapter.close()
        if self._entities is not None:
            self._entities.graphql.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
