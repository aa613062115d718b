"""
Product Record Schema
=====================
Declares every column of the product table once, with its kind.

Stages consult the schema to decide numeric vs categorical treatment
instead of branching on a column's runtime dtype.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import pandas as pd

IDENTIFIER = 'identifier'
NUMERIC = 'numeric'
CATEGORICAL = 'categorical'
TEXT = 'text'
FLAG = 'flag'


class MissingColumnError(KeyError):
    """An expected column is absent from a stage's input table."""

    def __init__(self, stage: str, columns: Iterable[str]):
        self.stage = stage
        self.columns = list(columns)
        super().__init__(f"{stage}: missing required column(s) {self.columns}")

    def __str__(self):
        return self.args[0]


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    kind: str


class ProductSchema:
    """
    Column kinds for raw and derived product attributes.

    Kinds:
    - identifier: join key, never summarized
    - numeric: summarized with count/mean/median/quantiles/...
    - categorical: summarized with mode and distinct count
    - text: free text, whitespace-trimmed but not summarized
    - flag: derived booleans
    """

    DEFAULT_COLUMNS = (
        ColumnSpec('ID', IDENTIFIER),
        ColumnSpec('ProductID', IDENTIFIER),
        ColumnSpec('ProductName', CATEGORICAL),
        ColumnSpec('ProductBrand', CATEGORICAL),
        ColumnSpec('Gender', CATEGORICAL),
        ColumnSpec('Price (INR)', NUMERIC),
        ColumnSpec('Price', NUMERIC),
        ColumnSpec('NumImages', NUMERIC),
        ColumnSpec('Description', TEXT),
        ColumnSpec('PrimaryColor', CATEGORICAL),
        # Derived
        ColumnSpec('outlier', FLAG),
        ColumnSpec('price_range', CATEGORICAL),
        ColumnSpec('price_band', CATEGORICAL),
        ColumnSpec('age_group', CATEGORICAL),
        ColumnSpec('new_gender', CATEGORICAL),
        ColumnSpec('description_len', NUMERIC),
        ColumnSpec('color_in_description', FLAG),
        ColumnSpec('color_in_name', FLAG),
    )

    def __init__(self, columns: Optional[Iterable[ColumnSpec]] = None):
        specs = tuple(columns) if columns is not None else self.DEFAULT_COLUMNS
        self._columns: Dict[str, ColumnSpec] = {c.name: c for c in specs}

    def kind(self, column: str) -> Optional[str]:
        spec = self._columns.get(column)
        return spec.kind if spec else None

    def columns_of_kind(self, df: pd.DataFrame, *kinds: str) -> List[str]:
        """Columns of `df` (in table order) whose declared kind is in `kinds`."""
        return [c for c in df.columns if self.kind(c) in kinds]

    def numeric_columns(self, df: pd.DataFrame) -> List[str]:
        return self.columns_of_kind(df, NUMERIC)

    def categorical_columns(self, df: pd.DataFrame) -> List[str]:
        return self.columns_of_kind(df, CATEGORICAL)

    def string_columns(self, df: pd.DataFrame) -> List[str]:
        """Columns holding string values (categorical and free text)."""
        return self.columns_of_kind(df, CATEGORICAL, TEXT)

    def apply(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Coerce a freshly loaded table to the declared kinds.

        String columns keep missing values as NaN and hold str otherwise;
        numeric columns go through pd.to_numeric (errors raise).
        """
        df = df.copy()
        for col in self.string_columns(df):
            df[col] = df[col].map(lambda v: v if pd.isna(v) else str(v))
        for col in self.numeric_columns(df):
            df[col] = pd.to_numeric(df[col], errors='raise')
        return df

    @staticmethod
    def require(df: pd.DataFrame, columns: Iterable[str], stage: str) -> None:
        missing = [c for c in columns if c not in df.columns]
        if missing:
            raise MissingColumnError(stage, missing)


DEFAULT_SCHEMA = ProductSchema()
