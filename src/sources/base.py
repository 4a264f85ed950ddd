"""
Base source adapter interface.

A source adapter fetches records from one external system for a query key
and normalizes them into the pipeline's record models.
"""

from abc import ABC, abstractmethod
from typing import Any, Sequence

from pydantic import BaseModel, ValidationError

from src.core.errors import SourceDataInvalid
from src.observability.metrics import increment_counter, source_requests_total


class SourceAdapter(ABC):
    """
    Abstract base class for all source adapters.

    Adapters raise SourceUnavailable when the system cannot be reached or
    answers with a non-success status, and SourceDataInvalid when the
    response is missing required fields. They never retry.
    """

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Return the external system identifier."""
        pass

    def parse(self, model: type[BaseModel], payload: Any, key: str | None = None) -> Any:
        """
        Validate a payload into a record model.

        Raises:
            SourceDataInvalid: If the payload does not match the model
        """
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            increment_counter(source_requests_total, source=self.source_name, outcome="invalid")
            raise SourceDataInvalid(
                f"Invalid response format from {self.source_name}: {e.error_count()} field error(s): "
                + "; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
                ),
                source=self.source_name,
                key=key,
            ) from e

    def parse_many(self, model: type[BaseModel], payloads: Sequence[Any], key: str | None = None) -> list:
        return [self.parse(model, p, key=key) for p in payloads]

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(source={self.source_name})"
