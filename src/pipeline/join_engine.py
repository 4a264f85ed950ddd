"""
Join engine: the reconciliation pipeline core.

For every top-level query key, in input order:
    1. fetch the primary records
    2. derive a secondary key per primary record
    3. resolve the secondary record through a Lookup
    4. build an output record and project it onto the output schema

Primary records without a secondary key are skipped. Failures are handled
by the FailurePolicy: ISOLATE drops the failing key and moves on, STRICT
aborts the run. ConfigurationError always aborts.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Generic, Iterable, Mapping, Sequence, TypeVar

from src.core.errors import ConfigurationError
from src.core.models import OutputSchema
from src.observability.logger import get_logger
from src.observability.metrics import (
    increment_counter,
    keys_processed_total,
    records_emitted_total,
    records_skipped_total,
)
from src.pipeline.lookup_cache import Lookup

logger = get_logger(__name__)

P = TypeVar("P")
S = TypeVar("S")

OutputRecord = dict[str, str]


class FailurePolicy(str, Enum):
    """How the engine reacts to an error while processing one query key."""

    ISOLATE = "isolate"
    STRICT = "strict"


@dataclass(frozen=True)
class SecondaryJoin(Generic[P, S]):
    """
    How primary records are joined to secondary records.

    Attributes:
        derive_key: Pure function returning the secondary key, or None
        lookup: Resolves secondary keys to records
        required: When True a primary record without a secondary key is
            skipped; when False it is emitted with secondary=None
    """

    derive_key: Callable[[P], str | None]
    lookup: Lookup[S]
    required: bool = True


@dataclass
class KeyResult:
    """Outcome of processing one top-level key."""

    key: str
    records: list[OutputRecord] = field(default_factory=list)
    skipped: int = 0
    error: Exception | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class RunResult:
    """Outcome of a whole run; records are in input-key order."""

    records: list[OutputRecord]
    keys_processed: int = 0
    keys_failed: list[str] = field(default_factory=list)
    records_skipped: int = 0


class JoinEngine(Generic[P, S]):
    """
    Drives one reconciliation pipeline.

    Args:
        name: Pipeline name used in logs and metrics
        schema: Output schema every record is projected onto
        fetch_primary: Adapter operation returning the primary records of a key
        build_record: Maps (key, primary, secondary) to a flat output mapping
        secondary: Optional secondary join
        policy: Failure policy
        workers: Number of keys processed concurrently (1 = sequential)
    """

    def __init__(
        self,
        name: str,
        schema: OutputSchema,
        fetch_primary: Callable[[str], Sequence[P]],
        build_record: Callable[[str, P, S | None], Mapping[str, Any]],
        secondary: SecondaryJoin[P, S] | None = None,
        policy: FailurePolicy = FailurePolicy.ISOLATE,
        workers: int = 1,
    ):
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self.name = name
        self.schema = schema
        self.fetch_primary = fetch_primary
        self.build_record = build_record
        self.secondary = secondary
        self.policy = FailurePolicy(policy)
        self.workers = workers

    def run(self, keys: Iterable[str]) -> RunResult:
        """
        Process every key and return the accumulated output records.

        With workers > 1 keys are processed concurrently, but per-key results
        are concatenated in input order so the output matches a sequential
        run.

        Raises:
            ConfigurationError: Always propagated
            Exception: The first per-key error under FailurePolicy.STRICT
        """
        keys = list(keys)
        logger.info(
            f"Starting {self.name} for {len(keys)} keys",
            extra={"pipeline": self.name, "policy": self.policy.value, "workers": self.workers},
        )

        if self.workers == 1 or len(keys) <= 1:
            results = [self.process_key(k) for k in keys]
        else:
            with ThreadPoolExecutor(max_workers=self.workers, thread_name_prefix=self.name) as pool:
                results = list(pool.map(self.process_key, keys))

        run = RunResult(records=[])
        for result in results:
            run.keys_processed += 1
            run.records_skipped += result.skipped
            if result.failed:
                run.keys_failed.append(result.key)
                continue
            run.records.extend(result.records)

        logger.info(
            f"Finished {self.name}: {len(run.records)} records, "
            f"{run.records_skipped} skipped, {len(run.keys_failed)} failed keys",
            extra={"pipeline": self.name},
        )
        return run

    def process_key(self, key: str) -> KeyResult:
        """
        Process a single top-level key.

        Under ISOLATE any error is logged and returned in the result with no
        records; under STRICT it propagates.
        """
        try:
            result = self._join_key(key)
        except ConfigurationError:
            raise
        except Exception as e:
            increment_counter(keys_processed_total, pipeline=self.name, status="failed")
            logger.error(
                f"Error processing {self.name} key {key}: {e}",
                extra={"pipeline": self.name, "key": key, "error_type": type(e).__name__},
            )
            if self.policy is FailurePolicy.STRICT:
                raise
            return KeyResult(key=key, error=e)

        increment_counter(keys_processed_total, pipeline=self.name, status="success")
        if result.records:
            increment_counter(records_emitted_total, len(result.records), pipeline=self.name)
        if result.skipped:
            increment_counter(records_skipped_total, result.skipped, pipeline=self.name)
        return result

    def _join_key(self, key: str) -> KeyResult:
        logger.info(f"Fetching {self.name} data for {key} ...", extra={"pipeline": self.name, "key": key})
        primaries = list(self.fetch_primary(key))
        logger.info(f"Retrieved {len(primaries)} primary records for {key}", extra={"pipeline": self.name})

        result = KeyResult(key=key)
        secondary_keys: list[str | None] = []
        if self.secondary is not None:
            secondary_keys = [self.secondary.derive_key(p) for p in primaries]
            self.secondary.lookup.prefetch(k for k in secondary_keys if k)

        for index, primary in enumerate(primaries):
            secondary = None
            if self.secondary is not None:
                secondary_key = secondary_keys[index]
                logger.debug(
                    f"Processing record {index + 1}/{len(primaries)}, secondary key: {secondary_key}",
                    extra={"pipeline": self.name, "key": key},
                )
                if secondary_key is None:
                    if self.secondary.required:
                        logger.info(
                            "No secondary key found for this record, skipping...",
                            extra={"pipeline": self.name, "key": key},
                        )
                        result.skipped += 1
                        continue
                else:
                    secondary = self.secondary.lookup.lookup(secondary_key)
                    if secondary is None and self.secondary.required:
                        logger.info(
                            f"No secondary record for {secondary_key}, skipping...",
                            extra={"pipeline": self.name, "key": key},
                        )
                        result.skipped += 1
                        continue

            record = self.schema.normalize(self.build_record(key, primary, secondary))
            result.records.append(record)

        return result
