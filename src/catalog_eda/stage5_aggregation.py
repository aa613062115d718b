"""
Stage 5: Aggregation & Reporting
================================
Read-only summaries over the cleaned and derived product table.

Outputs:
1. Univariate summaries (numeric statistics, categorical mode/distinct)
2. Outlier summary
3. Top-N rankings (by count and by average price)
4. Segment tables (gender, age group, color, price range)
5. Pearson correlations of description length with price and images
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

import numpy as np
import pandas as pd
from scipy import stats

from .schema import ProductSchema, DEFAULT_SCHEMA

logger = logging.getLogger(__name__)

NUMERIC_STATISTICS = ['count', 'min', 'max', 'mean', 'median', 'p25', 'p75', 'variance', 'std', 'sum']


@dataclass(frozen=True)
class Correlation:
    x: str
    y: str
    r: float
    p_value: float
    n: int


@dataclass(frozen=True)
class AggregationReport:
    """Every table produced by CatalogAggregator; built once, never mutated."""
    numeric_summary: pd.DataFrame
    categorical_summary: pd.DataFrame
    outlier_summary: pd.DataFrame
    correlations: Dict[str, Correlation]
    rankings: Dict[str, pd.DataFrame] = field(default_factory=dict)
    segments: Dict[str, pd.DataFrame] = field(default_factory=dict)

    def table(self, name: str) -> Optional[pd.DataFrame]:
        """Ranking or segment table by name; None when it was not produced."""
        if name in self.rankings:
            return self.rankings[name]
        return self.segments.get(name)


def describe_numeric(values: pd.Series) -> Optional[Dict[str, float]]:
    """Descriptive statistics over non-missing values; None when nothing is left."""
    values = pd.to_numeric(values, errors='coerce').dropna()
    if len(values) == 0:
        return None
    return {
        'count': int(len(values)),
        'min': float(values.min()),
        'max': float(values.max()),
        'mean': float(values.mean()),
        'median': float(values.median()),
        'p25': float(values.quantile(0.25)),
        'p75': float(values.quantile(0.75)),
        # Sample variance; undefined for a single value
        'variance': float(values.var()) if len(values) > 1 else np.nan,
        'std': float(values.std()) if len(values) > 1 else np.nan,
        'sum': float(values.sum()),
    }


def mode_value(values: pd.Series):
    """Most frequent non-missing value, ties broken by sorted order."""
    counts = values.dropna().value_counts()
    if len(counts) == 0:
        return np.nan
    tied = counts[counts == counts.max()].index
    return sorted(tied, key=str)[0]


def pearson(df: pd.DataFrame, x: str, y: str) -> Correlation:
    """Pearson r on rows where both operands are present."""
    pairs = df[[x, y]].apply(pd.to_numeric, errors='coerce').dropna()
    n = len(pairs)
    if n < 2 or pairs[x].nunique() < 2 or pairs[y].nunique() < 2:
        return Correlation(x, y, np.nan, np.nan, n)
    r, p_value = stats.pearsonr(pairs[x], pairs[y])
    return Correlation(x, y, float(r), float(p_value), n)


def group_statistics(df: pd.DataFrame, by: Union[str, List[str]], value: str = 'Price') -> pd.DataFrame:
    """Numeric statistics of `value` per group; groups with no values are skipped."""
    rows = []
    for key, group in df.groupby(by, dropna=False, sort=True):
        summary = describe_numeric(group[value])
        if summary is None:
            continue
        keys = key if isinstance(key, tuple) else (key,)
        names = by if isinstance(by, list) else [by]
        rows.append({**dict(zip(names, keys)), **summary})
    columns = (by if isinstance(by, list) else [by]) + NUMERIC_STATISTICS
    return pd.DataFrame(rows, columns=columns)


def top_n(
    df: pd.DataFrame,
    by: str,
    value: Optional[str] = None,
    n: int = 10
) -> pd.DataFrame:
    """
    Top `n` groups of `by`.

    Without `value`, ranks by row count (column 'Count'); otherwise by the
    mean of `value` (column 'AveragePrice' for prices, else 'Average<value>').
    Ties keep the group's sorted order.
    """
    if value is None:
        counts = df.groupby(by).size().rename('Count').reset_index()
        return counts.sort_values('Count', ascending=False, kind='mergesort').head(n).reset_index(drop=True)

    label = 'AveragePrice' if value == 'Price' else f'Average{value}'
    means = df.groupby(by)[value].mean().rename(label).dropna().reset_index()
    return means.sort_values(label, ascending=False, kind='mergesort').head(n).reset_index(drop=True)


class CatalogAggregator:
    """
    Computes every summary table of the EDA report.

    Nothing here mutates the input table or a previously computed table.
    """

    def __init__(
        self,
        top_n: int = 10,
        top_n_per_group: int = 5,
        price_column: str = 'Price',
        color_column: str = 'PrimaryColor',
        popular_colors: Sequence[str] = ('blue', 'black', 'red'),
        schema: Optional[ProductSchema] = None
    ):
        self.top_n = top_n
        self.top_n_per_group = top_n_per_group
        self.price_column = price_column
        self.color_column = color_column
        self.popular_colors = tuple(popular_colors)
        self.schema = schema or DEFAULT_SCHEMA

    def run(self, df: pd.DataFrame) -> AggregationReport:
        logger.info("Stage 5: Aggregating")
        ProductSchema.require(df, [self.price_column], 'aggregate')

        report = AggregationReport(
            numeric_summary=self.numeric_summary(df),
            categorical_summary=self.categorical_summary(df),
            outlier_summary=self.outlier_summary(df),
            correlations=self.correlations(df),
            rankings=self.rankings(df),
            segments=self.segments(df),
        )
        logger.info(f"  - {len(report.rankings)} rankings, {len(report.segments)} segment tables")
        return report

    def numeric_summary(self, df: pd.DataFrame) -> pd.DataFrame:
        rows = {}
        for col in self.schema.numeric_columns(df):
            summary = describe_numeric(df[col])
            if summary is None:
                logger.warning(f"  - Skipping numeric summary of empty column {col}")
                continue
            rows[col] = summary
        return pd.DataFrame.from_dict(rows, orient='index', columns=NUMERIC_STATISTICS)

    def categorical_summary(self, df: pd.DataFrame) -> pd.DataFrame:
        rows = {
            col: {
                'mode': mode_value(df[col]),
                # Missing counts as one distinct value
                'distinct': int(df[col].nunique(dropna=False)),
            }
            for col in self.schema.categorical_columns(df)
        }
        return pd.DataFrame.from_dict(rows, orient='index', columns=['mode', 'distinct'])

    def outlier_summary(self, df: pd.DataFrame) -> pd.DataFrame:
        if 'outlier' not in df.columns:
            return pd.DataFrame(columns=['outlier', 'AveragePrice', 'Count'])
        return df.groupby('outlier').agg(
            AveragePrice=(self.price_column, 'mean'),
            Count=(self.price_column, 'size'),
        ).reset_index()

    def correlations(self, df: pd.DataFrame) -> Dict[str, Correlation]:
        results = {}
        if 'description_len' not in df.columns:
            return results
        for other in (self.price_column, 'NumImages'):
            if other in df.columns:
                results[f'description_len~{other}'] = pearson(df, 'description_len', other)
        return results

    def rankings(self, df: pd.DataFrame) -> Dict[str, pd.DataFrame]:
        n = self.top_n
        price = self.price_column
        plans = {
            'top_colors': (self.color_column, None),
            'top_brands': ('ProductBrand', None),
            'top_names': ('ProductName', None),
            'top_brands_by_price': ('ProductBrand', price),
            'top_names_by_price': ('ProductName', price),
        }
        return {
            name: top_n(df, by, value, n)
            for name, (by, value) in plans.items()
            if by in df.columns
        }

    def segments(self, df: pd.DataFrame) -> Dict[str, pd.DataFrame]:
        price = self.price_column
        color = self.color_column
        tables = {}

        def has(*cols):
            return all(c in df.columns for c in cols)

        def mean_price(by, sort_desc=True):
            table = df.groupby(by).agg(AveragePrice=(price, 'mean')).reset_index()
            if sort_desc:
                table = table.sort_values('AveragePrice', ascending=False, kind='mergesort')
            return table.reset_index(drop=True)

        def counts(by, order_by=None):
            table = df.groupby(by).size().rename('Count').reset_index()
            if order_by is not None:
                table = table.sort_values([order_by, 'Count'], ascending=[True, False], kind='mergesort')
            return table.reset_index(drop=True)

        if has('Gender'):
            tables['gender_counts'] = counts('Gender')
            tables['price_by_gender'] = mean_price('Gender')
        if has(color):
            tables['price_by_color'] = mean_price(color)
        if has('Gender', color):
            tables['price_by_gender_color'] = mean_price(['Gender', color], sort_desc=False)

        if has('new_gender'):
            tables['new_gender_price'] = df.groupby('new_gender').agg(
                Count=(price, 'size'),
                AveragePrice=(price, 'mean'),
                MedianPrice=(price, 'median'),
            ).reset_index().sort_values('AveragePrice', ascending=False, kind='mergesort').reset_index(drop=True)
        if has('new_gender', 'ProductBrand'):
            tables['new_gender_brands'] = counts(['new_gender', 'ProductBrand'], order_by='new_gender')

        if has('age_group'):
            tables['age_group_price'] = df.groupby('age_group').agg(
                Count=(price, 'size'),
                AveragePrice=(price, 'mean'),
            ).reset_index()
        if has('age_group', 'Gender'):
            tables['age_group_gender'] = counts(['age_group', 'Gender'])
        if has('age_group', 'ProductBrand'):
            age_brands = counts(['age_group', 'ProductBrand'], order_by='age_group')
            tables['age_group_brands'] = age_brands
            tables['age_group_top_brands'] = (
                age_brands.groupby('age_group', sort=False).head(self.top_n_per_group).reset_index(drop=True)
            )
        if has('age_group', color):
            tables['age_group_colors'] = df.groupby(['age_group', color]).agg(
                Count=(price, 'size'),
                AveragePrice=(price, 'mean'),
            ).reset_index().sort_values(['age_group', 'Count'], ascending=[True, False], kind='mergesort') \
                .reset_index(drop=True)
        if has('age_group', 'price_range'):
            tables['age_group_price_range'] = df.groupby(['age_group', 'price_range']).agg(
                AveragePrice=(price, 'mean'),
                Count=(price, 'size'),
            ).reset_index().sort_values(['age_group', 'AveragePrice'], ascending=[True, False], kind='mergesort') \
                .reset_index(drop=True)

        if has('new_gender', 'color_in_description'):
            tables['color_in_description_by_gender'] = counts(['new_gender', 'color_in_description'])
        if has('new_gender', 'color_in_name'):
            tables['color_in_name_by_gender'] = counts(['new_gender', 'color_in_name'])
        if has('color_in_name', 'color_in_description'):
            tables['color_mention_impact'] = df.groupby(['color_in_name', 'color_in_description']).agg(
                AveragePrice=(price, 'mean'),
                MedianPrice=(price, 'median'),
                Count=(price, 'size'),
            ).reset_index().sort_values('AveragePrice', ascending=False, kind='mergesort').reset_index(drop=True)

        if has(color, 'new_gender'):
            popular = df[df[color].isin(self.popular_colors)]
            tables['popular_colors_by_gender'] = popular.groupby([color, 'new_gender']).agg(
                AveragePrice=(price, 'mean'),
                Count=(price, 'size'),
            ).reset_index()
        if has('Gender', 'price_band'):
            tables['gender_price_band'] = counts(['Gender', 'price_band'])
        if has('ProductBrand'):
            tables['brand_price_count'] = df.groupby('ProductBrand').agg(
                AveragePrice=(price, 'mean'),
                Count=(price, 'size'),
            ).reset_index().sort_values('AveragePrice', ascending=False, kind='mergesort') \
                .head(self.top_n).reset_index(drop=True)

        # Full price statistics per segment
        for group in ('Gender', 'new_gender', 'age_group', 'price_range'):
            if has(group):
                name = 'gender' if group == 'Gender' else group
                tables[f'price_stats_by_{name}'] = group_statistics(df, group, value=price)

        return tables


def format_correlation(corr: Correlation) -> str:
    if np.isnan(corr.r):
        return f"Correlation between {corr.x} and {corr.y}: undefined (n={corr.n})"
    return f"Correlation between {corr.x} and {corr.y}: {corr.r:.4f} (p={corr.p_value:.3g}, n={corr.n})"


def print_report(report: AggregationReport) -> None:
    """Print every table of the report to the console."""
    print("\n" + "=" * 70)
    print("Univariate Analysis - Numeric Columns")
    print("=" * 70)
    print(report.numeric_summary.to_string())

    print("\n" + "=" * 70)
    print("Univariate Analysis - Categorical Columns")
    print("=" * 70)
    print(report.categorical_summary.to_string())

    print("\nOutlier summary:")
    print(report.outlier_summary.to_string(index=False))

    for name, table in list(report.rankings.items()) + list(report.segments.items()):
        print(f"\n{name}:")
        print(table.to_string(index=False) if len(table) > 0 else "  (empty)")

    print("\n" + "=" * 70)
    print("Correlation Analysis")
    print("=" * 70)
    for corr in report.correlations.values():
        print(format_correlation(corr))
