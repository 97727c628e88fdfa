"""
Tabular data model.

This module defines the in-memory representation of a parsed dataset:
columns with an inferred type, positionally aligned row tuples, and a
summary that partitions column names by kind. Tables are produced by the
upload parser and are read-only for the rest of the pipeline.
"""

import hashlib
import json
from typing import Any, List, Literal, Optional

import numpy as np
import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

ColumnType = Literal["string", "number", "date", "boolean"]


class Column(BaseModel):
    """A named, typed column of raw cell values."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: ColumnType = "string"
    values: List[Any] = Field(default_factory=list)


class TableSummary(BaseModel):
    """Aggregate facts about a table, derived from its columns and rows."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    total_rows: int = Field(0, alias="totalRows")
    total_columns: int = Field(0, alias="totalColumns")
    numeric_columns: List[str] = Field(default_factory=list, alias="numericColumns")
    string_columns: List[str] = Field(default_factory=list, alias="stringColumns")
    date_columns: List[str] = Field(default_factory=list, alias="dateColumns")


class ColumnStatistics(BaseModel):
    """Descriptive aggregates for a single column."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    type: ColumnType
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    unique_count: int = Field(0, alias="uniqueCount")


def build_summary(columns: List[Column], rows: List[List[Any]]) -> TableSummary:
    """
    Compute the summary of a table.

    Boolean columns are categorical and are listed with the string columns,
    so every column name lands in exactly one of the three lists.
    """
    numeric = [col.name for col in columns if col.type == "number"]
    temporal = [col.name for col in columns if col.type == "date"]
    categorical = [col.name for col in columns if col.type in ("string", "boolean")]

    return TableSummary(
        total_rows=len(rows),
        total_columns=len(columns),
        numeric_columns=numeric,
        string_columns=categorical,
        date_columns=temporal,
    )


class Table(BaseModel):
    """
    Parsed dataset ("ParsedData").

    ``rows`` holds one tuple per record, positionally aligned to ``columns``.
    ``summary`` is recomputed from the columns on access and is never stored,
    so any summary supplied by a caller is ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    columns: List[Column] = Field(default_factory=list)
    rows: List[List[Any]] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def fill_column_values(cls, data: Any) -> Any:
        """Derive each column's values from the rows when none are given."""
        if not isinstance(data, dict):
            return data

        rows = data.get("rows") or []
        columns = []
        for index, column in enumerate(data.get("columns") or []):
            if isinstance(column, Column):
                column = column.model_dump()
            if isinstance(column, dict) and not column.get("values"):
                column = dict(column)
                column["values"] = [
                    row[index] if isinstance(row, (list, tuple)) and index < len(row) else None
                    for row in rows
                ]
            columns.append(column)

        return {**data, "columns": columns}

    @model_validator(mode="after")
    def check_columns(self) -> "Table":
        names = [column.name for column in self.columns]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Duplicate column names: {duplicates}")

        for column in self.columns:
            if len(column.values) != len(self.rows):
                raise ValueError(
                    f"Column '{column.name}' has {len(column.values)} values for {len(self.rows)} rows"
                )
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def summary(self) -> TableSummary:
        return build_summary(self.columns, self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.columns or not self.rows

    def column_index(self, name: Optional[str]) -> int:
        """
        Get the positional index of a column.

        Args:
            name: Column name

        Returns:
            Index into each row tuple, or -1 when the column does not exist
        """
        if name is None:
            return -1
        for index, column in enumerate(self.columns):
            if column.name == name:
                return index
        return -1

    def get_column(self, name: str) -> Optional[Column]:
        index = self.column_index(name)
        return self.columns[index] if index >= 0 else None

    def column_values(self, name: str) -> List[Any]:
        """
        Get the row-aligned values of a column.

        Args:
            name: Column name

        Returns:
            One value per row (None where a row is short), empty when the
            column does not exist
        """
        index = self.column_index(name)
        if index < 0:
            return []
        return [row[index] if index < len(row) else None for row in self.rows]

    def to_frame(self) -> pd.DataFrame:
        """Convert to a DataFrame with one column per table column."""
        names = [column.name for column in self.columns]
        records = [list(row[: len(names)]) + [None] * (len(names) - len(row)) for row in self.rows]
        return pd.DataFrame(records, columns=names)

    def fingerprint(self) -> str:
        """
        Content fingerprint of the table.

        Returns:
            SHA-256 hex digest over the canonical JSON of columns and rows
        """
        payload = {
            "columns": [[column.name, column.type] for column in self.columns],
            "rows": self.rows,
        }
        canonical = json.dumps(payload, sort_keys=True, default=str, separators=(",", ":"))
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()

    def describe_column(self, name: str) -> Optional[ColumnStatistics]:
        """
        Compute descriptive aggregates for a column.

        Numeric columns get min/max/mean over their finite values; every
        column gets the count of distinct non-null values.

        Args:
            name: Column name

        Returns:
            ColumnStatistics, or None when the column does not exist
        """
        column = self.get_column(name)
        if column is None:
            return None

        series = pd.Series(self.column_values(name), dtype="object")
        unique_count = int(series.dropna().astype(str).nunique())

        if column.type != "number":
            return ColumnStatistics(name=name, type=column.type, unique_count=unique_count)

        numbers = pd.to_numeric(series, errors="coerce").astype(float)
        numbers = numbers[np.isfinite(numbers)]
        if numbers.empty:
            return ColumnStatistics(name=name, type=column.type, unique_count=unique_count)

        return ColumnStatistics(
            name=name,
            type=column.type,
            min=float(numbers.min()),
            max=float(numbers.max()),
            mean=float(numbers.mean()),
            unique_count=unique_count,
        )
