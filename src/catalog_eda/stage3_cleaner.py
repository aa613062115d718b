"""
Stage 3: Catalog Cleaner
========================
Deduplicates, fills missing colors, trims text and canonicalizes headers.

Steps (in order):
1. Drop exact duplicate rows
2. Fill missing/empty color values with 'Others'
3. Strip whitespace from string columns
4. Rename 'Price (INR)' -> 'Price'
"""

import logging
from typing import Optional

import pandas as pd

from .schema import ProductSchema, DEFAULT_SCHEMA

logger = logging.getLogger(__name__)


class CatalogCleaner:
    """Cleaning pass over the merged product table."""

    def __init__(
        self,
        color_column: str = 'PrimaryColor',
        color_fill_value: str = 'Others',
        raw_price_column: str = 'Price (INR)',
        price_column: str = 'Price',
        schema: Optional[ProductSchema] = None
    ):
        self.color_column = color_column
        self.color_fill_value = color_fill_value
        self.raw_price_column = raw_price_column
        self.price_column = price_column
        self.schema = schema or DEFAULT_SCHEMA

    def run(self, df: pd.DataFrame) -> pd.DataFrame:
        logger.info("Stage 3: Cleaning merged table")
        ProductSchema.require(df, [self.color_column, self.raw_price_column], 'clean')

        df = self.drop_duplicates(df)
        self._log_missing(df)
        self._warn_negative_prices(df)
        df = self.fill_missing_colors(df)
        df = self.strip_whitespace(df)
        df = self.rename_price(df)

        logger.info(f"  - Clean rows: {len(df):,}")
        return df

    def drop_duplicates(self, df: pd.DataFrame) -> pd.DataFrame:
        before = len(df)
        df = df.drop_duplicates().reset_index(drop=True)
        logger.info(f"  - Dropped {before - len(df):,} duplicate rows")
        return df

    def fill_missing_colors(self, df: pd.DataFrame) -> pd.DataFrame:
        """Missing, empty and whitespace-only colors become the fill value."""
        df = df.copy()
        color = df[self.color_column]
        blank = color.isna() | (color.astype(str).str.strip() == '')
        df[self.color_column] = color.where(~blank, self.color_fill_value)
        logger.info(f"  - Filled {int(blank.sum()):,} missing {self.color_column} values "
                    f"with '{self.color_fill_value}'")
        return df

    def strip_whitespace(self, df: pd.DataFrame) -> pd.DataFrame:
        df = df.copy()
        for col in self.schema.string_columns(df):
            df[col] = df[col].map(lambda v: v.strip() if isinstance(v, str) else v)
        return df

    def rename_price(self, df: pd.DataFrame) -> pd.DataFrame:
        return df.rename(columns={self.raw_price_column: self.price_column})

    def _warn_negative_prices(self, df: pd.DataFrame) -> int:
        """Prices must be non-negative; violations are kept but reported."""
        negative = int((pd.to_numeric(df[self.raw_price_column], errors='coerce') < 0).sum())
        if negative > 0:
            logger.warning(f"  - {negative:,} rows with negative {self.raw_price_column}")
        return negative

    def _log_missing(self, df: pd.DataFrame) -> None:
        missing = df.isna().sum()
        missing = missing[missing > 0]
        if len(missing) > 0:
            logger.info(f"  - Missing values before fill: {missing.to_dict()}")
        for col in (self.color_column, 'ProductName'):
            if col in df.columns and (df[col] == '').any():
                logger.info(f"  - Empty strings present in {col}")
