"""
Stage 1: Catalog Loader
=======================
Reads the two product sources into typed tables.

Sources:
1. products_catalog.csv - ID, ProductName, ProductBrand, Gender, Price (INR)
2. product_details.csv  - ProductID, NumImages, Description, PrimaryColor
"""

import csv
import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import pandas as pd

from .schema import ProductSchema, DEFAULT_SCHEMA

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class CatalogLoader:
    """
    Loads catalog and detail CSVs and applies the product schema.

    Steps:
    1. Existence check for both paths
    2. Row width check (every row must match the header's field count)
    3. pandas read_csv
    4. Schema coercion (strings vs numerics)
    """

    def __init__(self, schema: Optional[ProductSchema] = None, encoding: str = 'utf-8'):
        self.schema = schema or DEFAULT_SCHEMA
        self.encoding = encoding

    def run(
        self,
        catalog_path: PathLike,
        details_path: PathLike
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """
        Load both sources.

        Parameters
        ----------
        catalog_path : str or Path
            Product catalog CSV (keyed by ID)
        details_path : str or Path
            Product details CSV (keyed by ProductID)

        Returns
        -------
        Tuple[pd.DataFrame, pd.DataFrame]
            (catalog_df, details_df)
        """
        logger.info("Stage 1: Loading sources")
        catalog_df = self.load_table(catalog_path)
        details_df = self.load_table(details_path)
        return catalog_df, details_df

    def load_table(self, path: PathLike) -> pd.DataFrame:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {path}")

        self._check_row_widths(path)
        df = pd.read_csv(path, encoding=self.encoding)
        df = self.schema.apply(df)

        logger.info(f"Loaded {path.name}: {len(df):,} rows x {len(df.columns)} columns")
        missing = df.isna().sum()
        missing = missing[missing > 0]
        if len(missing) > 0:
            logger.info(f"  - Missing values: {missing.to_dict()}")
        return df

    def _check_row_widths(self, path: Path) -> None:
        """Raise ParserError on the first row whose field count differs from the header."""
        with open(path, newline='', encoding=self.encoding) as f:
            reader = csv.reader(f)
            header = next(reader, None)
            if header is None:
                raise pd.errors.EmptyDataError(f"No header row in {path}")
            expected = len(header)
            for row in reader:
                if not row:
                    continue
                if len(row) != expected:
                    raise pd.errors.ParserError(
                        f"Malformed row at line {reader.line_num} in {path}: "
                        f"expected {expected} fields, saw {len(row)}"
                    )


def preview_table(df: pd.DataFrame, name: str, n: int = 3) -> None:
    """Print head, dtypes and describe() of a loaded table."""
    print(f"\n{name}: {len(df):,} rows x {len(df.columns)} columns")
    print(df.head(n).to_string())
    print("\nColumn types:")
    print(df.dtypes.to_string())
    print("\nSummary:")
    print(df.describe(include='all').to_string())
