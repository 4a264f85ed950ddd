"""
Shared step of every report service: run the join engine over the keys,
then hand the complete record set to the sink once.
"""

from typing import Sequence

from src.observability.logger import get_logger, log_operation
from src.pipeline.context import ReconContext
from src.pipeline.join_engine import JoinEngine, RunResult

logger = get_logger(__name__)


def run_report(context: ReconContext, engine: JoinEngine, keys: Sequence[str]) -> RunResult:
    """
    Run a pipeline and write its report.

    Nothing is written unless every key has been processed, so an aborted
    run leaves no output file. A run with no records still writes the header.
    """
    with log_operation(engine.name, logger=logger, keys=len(keys)):
        result = engine.run(keys)
        # An empty record set still produces a header-only file, so a run
        # that matched nothing replaces the previous report.
        context.sink_for(engine.schema.filename).write(result.records, engine.schema)
    return result
