"""
Tests for Stage 3: Catalog Cleaner
==================================
"""

import logging

import pytest
import pandas as pd
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from catalog_eda.stage3_cleaner import CatalogCleaner
from catalog_eda.schema import MissingColumnError


class TestCatalogCleaner:
    """Test suite for CatalogCleaner."""

    def test_init(self):
        """Test cleaner defaults."""
        cleaner = CatalogCleaner()
        assert cleaner.color_column == 'PrimaryColor'
        assert cleaner.color_fill_value == 'Others'
        assert cleaner.price_column == 'Price'

    def test_duplicates_removed(self, merged_products):
        """Test exact duplicate rows are dropped."""
        clean = CatalogCleaner().run(merged_products)
        assert len(clean) == 5
        assert clean['ID'].is_unique

    def test_dedup_idempotent(self, merged_products):
        """Test deduplicating twice equals deduplicating once."""
        cleaner = CatalogCleaner()
        once = cleaner.drop_duplicates(merged_products)
        twice = cleaner.drop_duplicates(once)
        assert len(once) == len(twice)

    def test_color_fill_total(self, merged_products):
        """Test no color is missing or empty after cleaning."""
        clean = CatalogCleaner().run(merged_products)

        colors = clean['PrimaryColor']
        assert colors.notna().all()
        assert (colors.str.strip() != '').all()

    def test_missing_colors_become_others(self, merged_products):
        """Test whitespace-only and missing colors are filled with 'Others'."""
        clean = CatalogCleaner().run(merged_products).set_index('ID')

        assert clean.loc[2, 'PrimaryColor'] == 'Others'
        assert clean.loc[4, 'PrimaryColor'] == 'Others'
        assert clean.loc[1, 'PrimaryColor'] == 'Blue'

    def test_other_columns_keep_missing(self, merged_products):
        """Test only the color column is filled."""
        clean = CatalogCleaner().run(merged_products).set_index('ID')

        assert pd.isna(clean.loc[5, 'Description'])
        assert pd.isna(clean.loc[5, 'Price'])

    def test_whitespace_trimmed(self, merged_products):
        """Test string columns are stripped."""
        clean = CatalogCleaner().run(merged_products).set_index('ID')

        assert clean.loc[1, 'ProductName'] == 'Blue Denim Jacket'
        assert clean.loc[1, 'ProductBrand'] == 'Levis'
        assert clean.loc[3, 'Description'] == 'Red kurta'
        assert clean.loc[5, 'PrimaryColor'] == 'Green'

    def test_price_renamed(self, merged_products):
        """Test the raw price header is canonicalized."""
        clean = CatalogCleaner().run(merged_products)

        assert 'Price' in clean.columns
        assert 'Price (INR)' not in clean.columns

    def test_input_not_mutated(self, merged_products):
        """Test cleaning returns a new table."""
        before = merged_products.copy()
        CatalogCleaner().run(merged_products)
        pd.testing.assert_frame_equal(merged_products, before)


class TestCleanerErrors:
    """Test cleaner failure modes."""

    def test_missing_color_column(self, merged_products):
        """Test absence of the color column is fatal."""
        df = merged_products.drop(columns=['PrimaryColor'])
        with pytest.raises(MissingColumnError, match='PrimaryColor'):
            CatalogCleaner().run(df)

    def test_missing_price_column(self, merged_products):
        df = merged_products.drop(columns=['Price (INR)'])
        with pytest.raises(MissingColumnError):
            CatalogCleaner().run(df)


class TestNegativePrices:
    """Test negative prices are reported but kept."""

    def test_warning_logged(self, merged_products, caplog):
        df = merged_products.copy()
        df.loc[1, 'Price (INR)'] = -500.0

        with caplog.at_level(logging.WARNING, logger='catalog_eda.stage3_cleaner'):
            cleaned = CatalogCleaner().run(df)

        assert 'negative Price (INR)' in caplog.text
        assert (cleaned['Price'] == -500.0).sum() == 1

    def test_count(self, merged_products):
        df = merged_products.copy()
        df['Price (INR)'] = [-1.0, 5.0, -2.0, 3.0, 0.0, float('nan')]
        assert CatalogCleaner()._warn_negative_prices(df) == 2

    def test_no_warning_for_valid_prices(self, merged_products, caplog):
        with caplog.at_level(logging.WARNING, logger='catalog_eda.stage3_cleaner'):
            CatalogCleaner().run(merged_products)
        assert 'negative' not in caplog.text
