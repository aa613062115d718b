"""
Stage 2: Catalog Merger
=======================
Inner-joins the catalog and detail tables on the product identifier.
"""

import logging

import pandas as pd

from .schema import ProductSchema

logger = logging.getLogger(__name__)


class CatalogMerger:
    """
    Inner join keeping only keys present in both tables.

    A key repeated in the detail table fans out one-to-many. The result
    keeps a single identifier column named after the left key.
    """

    def __init__(self, left_key: str = 'ID', right_key: str = 'ProductID'):
        self.left_key = left_key
        self.right_key = right_key

    def run(self, catalog_df: pd.DataFrame, details_df: pd.DataFrame) -> pd.DataFrame:
        logger.info("Stage 2: Merging catalog with details")
        ProductSchema.require(catalog_df, [self.left_key], 'merge (catalog)')
        ProductSchema.require(details_df, [self.right_key], 'merge (details)')

        # pandas matches NaN keys to each other; a missing identifier is not a key
        left = catalog_df.dropna(subset=[self.left_key])
        right = details_df.dropna(subset=[self.right_key])
        left, right = self._align_key_types(left, right)

        merged = pd.merge(
            left,
            right,
            how='inner',
            left_on=self.left_key,
            right_on=self.right_key,
        )
        if self.left_key != self.right_key:
            merged = merged.drop(columns=[self.right_key])

        left_keys = set(catalog_df[self.left_key].dropna())
        right_keys = set(details_df[self.right_key].dropna())
        logger.info(f"  - Catalog rows: {len(catalog_df):,}, detail rows: {len(details_df):,}")
        logger.info(f"  - Merged rows: {len(merged):,} ({len(merged.columns)} columns)")
        logger.info(f"  - Keys only in catalog: {len(left_keys - right_keys):,}")
        logger.info(f"  - Keys only in details: {len(right_keys - left_keys):,}")

        return merged

    def _align_key_types(self, left: pd.DataFrame, right: pd.DataFrame):
        """
        Compare keys as strings when either side is non-numeric.

        Numeric keys merge as-is; a stray text key in one file would otherwise
        make pandas refuse to merge int64 with object.
        """
        left_numeric = pd.api.types.is_numeric_dtype(left[self.left_key])
        right_numeric = pd.api.types.is_numeric_dtype(right[self.right_key])
        if left_numeric and right_numeric:
            return left, right

        if left_numeric != right_numeric:
            logger.warning(f"  - Key types differ ({left[self.left_key].dtype} vs "
                           f"{right[self.right_key].dtype}); joining on string keys")
        left = left.copy()
        right = right.copy()
        left[self.left_key] = _key_strings(left[self.left_key])
        right[self.right_key] = _key_strings(right[self.right_key])
        return left, right


def _key_strings(keys: pd.Series) -> pd.Series:
    """String form of identifiers; integral floats lose their '.0'."""
    if pd.api.types.is_numeric_dtype(keys) and (keys % 1 == 0).all():
        return keys.astype('int64').astype(str)
    return keys.astype(str).str.strip()
