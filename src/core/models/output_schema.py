"""
Output schema: the fixed, ordered column layout of a CSV report.
"""

from typing import Any, Mapping

from pydantic import BaseModel, Field


class Column(BaseModel):
    """
    A single output column.

    Attributes:
        field_id: Key of the value in an output record
        title: Header text written to the file
    """

    field_id: str = Field(..., min_length=1)
    title: str

    class Config:
        frozen = True


class OutputSchema(BaseModel):
    """
    Ordered column layout for one report file.

    Attributes:
        name: Report name used in logs and metrics
        filename: File name relative to the output directory
        columns: Ordered columns
    """

    name: str
    filename: str
    columns: tuple[Column, ...]

    class Config:
        frozen = True

    @classmethod
    def of(cls, name: str, filename: str, *columns: tuple[str, str]) -> "OutputSchema":
        """Build a schema from (field_id, title) pairs."""
        return cls(
            name=name,
            filename=filename,
            columns=tuple(Column(field_id=f, title=t) for f, t in columns),
        )

    @property
    def field_ids(self) -> list[str]:
        return [c.field_id for c in self.columns]

    @property
    def titles(self) -> list[str]:
        return [c.title for c in self.columns]

    def normalize(self, record: Mapping[str, Any]) -> dict[str, str]:
        """
        Project a record onto this schema.

        Every schema field is present in the result; missing or None values
        become empty strings and everything else is converted with str().
        Keys outside the schema are dropped.
        """
        row = {}
        for field_id in self.field_ids:
            value = record.get(field_id)
            row[field_id] = "" if value is None else str(value)
        return row
