"""
Chart Rendering
===============
Renders the EDA charts as PNG files from the derived table and the
aggregation report. Charts are ephemeral visual output; file names are
stable but carry no format contract.
"""

import logging
from pathlib import Path
from typing import List, Optional

import matplotlib

matplotlib.use('Agg')

import matplotlib.pyplot as plt
import pandas as pd
import seaborn as sns

from .stage4_feature_derivation import PRICE_RANGE_LABELS, PRICE_BAND_LABELS
from .stage5_aggregation import AggregationReport

logger = logging.getLogger(__name__)

PRICE_RANGE_COLORS = dict(zip(PRICE_RANGE_LABELS, ['green', 'yellow', 'red']))


class ChartRenderer:
    """Writes one PNG per chart into `output_dir`."""

    def __init__(
        self,
        output_dir,
        price_column: str = 'Price',
        color_column: str = 'PrimaryColor',
        lower_price_threshold: float = 2000.0,
        dpi: int = 100
    ):
        self.output_dir = Path(output_dir)
        self.price_column = price_column
        self.color_column = color_column
        self.lower_price_threshold = lower_price_threshold
        self.dpi = dpi

    def render_all(self, df: pd.DataFrame, report: AggregationReport) -> List[Path]:
        logger.info(f"Rendering charts to {self.output_dir}")
        self.output_dir.mkdir(parents=True, exist_ok=True)
        price = self.price_column
        color = self.color_column
        threshold = self.lower_price_threshold

        written = [
            self.price_histogram(df, 'price_histogram', 'Price Histogram'),
            self.price_histogram(df[df[price] < threshold], 'price_histogram_lower',
                                 f'Price Histogram (Price < {threshold:,.0f})', fill='red', edge='green'),
            self.price_histogram(df[df[price] > threshold], 'price_histogram_upper',
                                 f'Price Histogram (Price > {threshold:,.0f})', fill='purple', edge='skyblue'),
            self.price_range_histogram(df),
            self.num_images_histogram(df),
            self.ranking_bar(report.table('top_colors'), color, 'Count',
                             'top_colors', 'PrimaryColor Bar Chart', annotate=True),
            self.ranking_bar(report.table('top_brands'), 'ProductBrand', 'Count',
                             'top_brands', 'Top 10 Product Brands'),
            self.ranking_bar(report.table('top_names'), 'ProductName', 'Count',
                             'top_names', 'Top 10 ProductName'),
            self.ranking_bar(report.table('gender_counts'), 'Gender', 'Count',
                             'gender_counts', 'Distribution of Products by Gender', annotate=True),
            self.scatter(df, 'NumImages', price, 'price_vs_num_images', 'Price vs Number of Images'),
            self.ranking_bar(report.table('top_brands_by_price'), 'ProductBrand', 'AveragePrice',
                             'top_brands_by_price', 'Top 10 Product Brands by Average Price'),
            self.ranking_bar(report.table('top_names_by_price'), 'ProductName', 'AveragePrice',
                             'top_names_by_price', 'Top 10 Product Names by Average Price'),
            self.ranking_bar(report.table('price_by_gender'), 'Gender', 'AveragePrice',
                             'price_by_gender', 'Average Price by Gender'),
            self.horizontal_bar(report.table('price_by_color'), color, 'AveragePrice',
                                'price_by_color', 'Average Price by Primary Color'),
            self.grouped_bar(report.table('price_by_gender_color'), 'Gender', 'AveragePrice', color,
                             'price_by_gender_color', 'Average Price by Gender and Primary Color'),
            self.gender_jitter(df),
            self.grouped_bar(report.table('age_group_gender'), 'age_group', 'Count', 'Gender',
                             'age_group_gender', 'AgeGroup and Gender Distribution'),
            self.ranking_bar(self._value_counts(df, 'new_gender'), 'new_gender', 'Count',
                             'new_gender_counts', 'Distribution of Products by NewGender'),
            self.grouped_bar(report.table('popular_colors_by_gender'), color, 'AveragePrice', 'new_gender',
                             'popular_colors_by_gender', 'Price Distribution for Popular Colors by Gender'),
            self.grouped_bar(report.table('age_group_price_range'), 'age_group', 'AveragePrice',
                             'price_range', 'age_group_price_range', 'Average Price by AgeGroup and PriceRange',
                             hue_order=list(PRICE_RANGE_LABELS)),
            self.grouped_bar(report.table('gender_price_band'), 'Gender', 'Count', 'price_band',
                             'gender_price_band', 'Price Range Distribution by Gender',
                             hue_order=list(PRICE_BAND_LABELS)),
        ]
        written = [p for p in written if p is not None]
        logger.info(f"  - Wrote {len(written)} charts")
        return written

    # Individual charts

    def price_histogram(self, df: pd.DataFrame, name: str, title: str,
                        fill: str = 'orange', edge: str = 'blue') -> Optional[Path]:
        values = df[self.price_column].dropna() if self.price_column in df.columns else pd.Series(dtype=float)
        if len(values) == 0:
            return self._skip(name)
        fig, ax = plt.subplots(figsize=(8, 5))
        ax.hist(values, bins=20, color=fill, edgecolor=edge)
        ax.set_xlabel('-- Price --')
        ax.set_ylabel('-- Distribution --')
        ax.set_title(title)
        return self._save(fig, name)

    def price_range_histogram(self, df: pd.DataFrame) -> Optional[Path]:
        name = 'price_range_histogram'
        if 'price_range' not in df.columns or df[self.price_column].dropna().empty:
            return self._skip(name)
        data = df.dropna(subset=[self.price_column, 'price_range'])
        if len(data) == 0:
            return self._skip(name)
        fig, ax = plt.subplots(figsize=(8, 5))
        sns.histplot(data=data, x=self.price_column, hue='price_range', bins=30,
                     hue_order=[r for r in PRICE_RANGE_LABELS if r in set(data['price_range'])],
                     palette=PRICE_RANGE_COLORS, multiple='stack', ax=ax)
        ax.set_xlabel('-- Price --')
        ax.set_ylabel('-- Distribution --')
        ax.set_title('Price Histogram by Price Range')
        return self._save(fig, name)

    def num_images_histogram(self, df: pd.DataFrame) -> Optional[Path]:
        name = 'num_images_histogram'
        if 'NumImages' not in df.columns or df['NumImages'].dropna().empty:
            return self._skip(name)
        fig, ax = plt.subplots(figsize=(8, 5))
        sns.histplot(df['NumImages'].dropna(), binwidth=1, color='orange', edgecolor='black', ax=ax)
        ax.set_xlabel('Number of Images')
        ax.set_ylabel('Count')
        ax.set_title('Distribution of Number of Images')
        return self._save(fig, name)

    def ranking_bar(self, table: Optional[pd.DataFrame], x: str, y: str, name: str, title: str,
                    annotate: bool = False) -> Optional[Path]:
        if table is None or len(table) == 0:
            return self._skip(name)
        fig, ax = plt.subplots(figsize=(10, 6))
        sns.barplot(data=table, x=x, y=y, hue=x, order=list(table[x]), legend=False, ax=ax)
        if annotate:
            for container in ax.containers:
                ax.bar_label(container, fontsize=8)
        ax.set_title(title)
        ax.tick_params(axis='x', labelrotation=45)
        return self._save(fig, name)

    def horizontal_bar(self, table: Optional[pd.DataFrame], y: str, x: str, name: str,
                       title: str) -> Optional[Path]:
        if table is None or len(table) == 0:
            return self._skip(name)
        ordered = table.sort_values(x, ascending=False)
        fig, ax = plt.subplots(figsize=(8, max(4, 0.3 * len(ordered))))
        sns.barplot(data=ordered, x=x, y=y, hue=y, order=list(ordered[y]), legend=False, ax=ax)
        ax.set_xlabel('Average Price (INR)')
        ax.set_title(title)
        return self._save(fig, name)

    def grouped_bar(self, table: Optional[pd.DataFrame], x: str, y: str, hue: str, name: str,
                    title: str, hue_order: Optional[List[str]] = None) -> Optional[Path]:
        if table is None or len(table) == 0:
            return self._skip(name)
        if hue_order is not None:
            hue_order = [h for h in hue_order if h in set(table[hue])] or None
        fig, ax = plt.subplots(figsize=(10, 6))
        sns.barplot(data=table, x=x, y=y, hue=hue, hue_order=hue_order, ax=ax)
        ax.set_title(title)
        return self._save(fig, name)

    def scatter(self, df: pd.DataFrame, x: str, y: str, name: str, title: str) -> Optional[Path]:
        if x not in df.columns or y not in df.columns:
            return self._skip(name)
        data = df[[x, y]].dropna()
        if len(data) == 0:
            return self._skip(name)
        fig, ax = plt.subplots(figsize=(8, 5))
        ax.scatter(data[x], data[y], alpha=0.6, color='blue')
        ax.set_xlabel(x)
        ax.set_ylabel(y)
        ax.set_title(title)
        return self._save(fig, name)

    def gender_jitter(self, df: pd.DataFrame) -> Optional[Path]:
        name = 'price_by_gender_num_images'
        if 'Gender' not in df.columns or 'NumImages' not in df.columns:
            return self._skip(name)
        data = df.dropna(subset=['Gender', self.price_column])
        if len(data) == 0:
            return self._skip(name)
        fig, ax = plt.subplots(figsize=(10, 6))
        sns.stripplot(data=data, x='Gender', y=self.price_column, hue='NumImages',
                      jitter=True, alpha=0.5, palette='viridis', ax=ax)
        ax.set_title('Price by Gender and Number of Images')
        return self._save(fig, name)

    # Helpers

    @staticmethod
    def _value_counts(df: pd.DataFrame, column: str) -> Optional[pd.DataFrame]:
        if column not in df.columns:
            return None
        return df.groupby(column).size().rename('Count').reset_index()

    def _save(self, fig, name: str) -> Path:
        path = self.output_dir / f'{name}.png'
        fig.tight_layout()
        fig.savefig(path, dpi=self.dpi)
        plt.close(fig)
        return path

    def _skip(self, name: str) -> None:
        logger.info(f"  - Skipping chart {name}: no data")
        return None
