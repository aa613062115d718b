"""
Stage 4: Feature Derivation
===========================
Adds derived product attributes to the cleaned table.

Features:
1. outlier              - price outside the 1.5*IQR fences
2. price_range          - Lower / Middle / Upper Range (2000 / 10000)
3. price_band           - Low / Medium / High (5000 / 15000)
4. age_group            - Kids / Adults from Gender
5. new_gender           - Men / Women / Unisex from Gender
6. description_len      - character length of Description
7. color_in_description - PrimaryColor occurs in Description
8. color_in_name        - PrimaryColor occurs in ProductName

Only the outlier fences need a full-column pass; everything else is row-local.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import pandas as pd

from .schema import ProductSchema

logger = logging.getLogger(__name__)

AGE_GROUP_MAP = {
    'Boys': 'Kids',
    'Girls': 'Kids',
    'Unisex Kids': 'Kids',
    'Men': 'Adults',
    'Women': 'Adults',
    'Unisex': 'Adults',
}

NEW_GENDER_MAP = {
    'Men': 'Men',
    'Boys': 'Men',
    'Women': 'Women',
    'Girls': 'Women',
    'Unisex': 'Unisex',
    'Unisex Kids': 'Unisex',
}

UNMAPPED_LABEL = 'Other'

PRICE_RANGE_LABELS = ('Lower Range', 'Middle Range', 'Upper Range')
PRICE_BAND_LABELS = ('Low', 'Medium', 'High')


class UnmappedGenderError(ValueError):
    """Gender values outside the known derivation sets under the 'raise' policy."""


@dataclass(frozen=True)
class PriceBounds:
    q1: float
    q3: float
    iqr: float
    lower: float
    upper: float


def compute_price_bounds(prices: pd.Series, multiplier: float = 1.5) -> PriceBounds:
    """
    IQR fences over non-missing prices (linear-interpolated quartiles).

    All-missing input yields NaN bounds, which flag nothing.
    """
    values = pd.to_numeric(prices, errors='coerce').dropna()
    if len(values) == 0:
        return PriceBounds(np.nan, np.nan, np.nan, np.nan, np.nan)
    q1 = float(values.quantile(0.25))
    q3 = float(values.quantile(0.75))
    iqr = q3 - q1
    return PriceBounds(
        q1=q1,
        q3=q3,
        iqr=iqr,
        lower=q1 - multiplier * iqr,
        upper=q3 + multiplier * iqr,
    )


def flag_outliers(prices: pd.Series, bounds: PriceBounds) -> pd.Series:
    """True where price < lower fence or > upper fence; missing prices are never outliers."""
    flags = (prices < bounds.lower) | (prices > bounds.upper)
    return flags.fillna(False).astype(bool)


def contains_color(color, text, case_sensitive: bool = True) -> bool:
    """Literal substring test; missing or empty operands never match."""
    if not isinstance(color, str) or not isinstance(text, str) or color == '':
        return False
    if not case_sensitive:
        return color.lower() in text.lower()
    return color in text


class FeatureDeriver:
    """
    Derives categorical and flag features from price, gender and text.

    Unmapped gender policy:
    - 'other': unmapped values get the label 'Other' (logged)
    - 'null':  unmapped values stay missing
    - 'raise': UnmappedGenderError listing the offending values

    Color mentions are case-sensitive by default, so 'Blue' does not match
    'This blue jacket is warm'. Pass color_match_case_sensitive=False to
    compare case-insensitively.
    """

    def __init__(
        self,
        price_column: str = 'Price',
        color_column: str = 'PrimaryColor',
        lower_price_threshold: float = 2000.0,
        upper_price_threshold: float = 10000.0,
        iqr_multiplier: float = 1.5,
        unmapped_gender: str = 'other',
        color_match_case_sensitive: bool = True
    ):
        self.price_column = price_column
        self.color_column = color_column
        self.lower_price_threshold = lower_price_threshold
        self.upper_price_threshold = upper_price_threshold
        self.iqr_multiplier = iqr_multiplier
        self.unmapped_gender = unmapped_gender
        self.color_match_case_sensitive = color_match_case_sensitive
        self.price_bounds: Optional[PriceBounds] = None

    def run(self, df: pd.DataFrame) -> pd.DataFrame:
        logger.info("Stage 4: Deriving features")
        ProductSchema.require(
            df,
            [self.price_column, self.color_column, 'Gender', 'Description', 'ProductName'],
            'derive'
        )
        df = df.copy()

        # Step 1: Outliers (needs a full-column pass)
        self.price_bounds = compute_price_bounds(df[self.price_column], self.iqr_multiplier)
        df['outlier'] = flag_outliers(df[self.price_column], self.price_bounds)
        logger.info(f"  - IQR fences: [{self.price_bounds.lower:,.2f}, {self.price_bounds.upper:,.2f}], "
                    f"outliers: {int(df['outlier'].sum()):,}")

        # Step 2: Price buckets
        df['price_range'] = self.assign_price_range(df[self.price_column])
        df['price_band'] = self.assign_price_band(df[self.price_column])

        # Step 3: Gender-derived segments
        df['age_group'], df['new_gender'] = self.derive_gender_segments(df['Gender'])

        # Step 4: Text features
        df['description_len'] = df['Description'].map(
            lambda v: len(v) if isinstance(v, str) else np.nan
        )
        df['color_in_description'] = self._color_mentions(df, 'Description')
        df['color_in_name'] = self._color_mentions(df, 'ProductName')
        logger.info(f"  - Color in description: {int(df['color_in_description'].sum()):,}, "
                    f"in name: {int(df['color_in_name'].sum()):,}")

        return df

    def assign_price_range(self, prices: pd.Series) -> pd.Series:
        """Right-closed buckets: p <= 2000, 2000 < p <= 10000, p > 10000."""
        bins = [-np.inf, self.lower_price_threshold, self.upper_price_threshold, np.inf]
        return pd.cut(prices, bins=bins, labels=list(PRICE_RANGE_LABELS), right=True).astype(object)

    @staticmethod
    def assign_price_band(prices: pd.Series) -> pd.Series:
        """Left-closed bands: p < 5000, 5000 <= p < 15000, p >= 15000."""
        bins = [-np.inf, 5000, 15000, np.inf]
        return pd.cut(prices, bins=bins, labels=list(PRICE_BAND_LABELS), right=False).astype(object)

    def derive_gender_segments(self, gender: pd.Series):
        age_group = gender.map(AGE_GROUP_MAP)
        new_gender = gender.map(NEW_GENDER_MAP)

        unmapped = age_group.isna()
        if unmapped.any():
            values = sorted({str(v) for v in gender[unmapped]})
            if self.unmapped_gender == 'raise':
                raise UnmappedGenderError(f"Gender values without a mapping: {values}")
            if self.unmapped_gender == 'other':
                age_group = age_group.fillna(UNMAPPED_LABEL)
                new_gender = new_gender.fillna(UNMAPPED_LABEL)
            logger.warning(f"  - {int(unmapped.sum()):,} rows with unmapped gender {values} "
                           f"(policy: {self.unmapped_gender})")
        return age_group, new_gender

    def _color_mentions(self, df: pd.DataFrame, text_column: str) -> pd.Series:
        flags = [
            contains_color(color, text, self.color_match_case_sensitive)
            for color, text in zip(df[self.color_column], df[text_column])
        ]
        return pd.Series(flags, index=df.index, dtype=bool)
