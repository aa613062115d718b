"""
Tests for Stage 2: Catalog Merger
=================================
"""

import pytest
import pandas as pd
import numpy as np
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent.parent / 'src'))

from catalog_eda.stage2_merger import CatalogMerger
from catalog_eda.schema import MissingColumnError


class TestCatalogMerger:
    """Test suite for CatalogMerger."""

    def test_init(self):
        """Test merger initialization."""
        merger = CatalogMerger()
        assert merger.left_key == 'ID'
        assert merger.right_key == 'ProductID'

    def test_inner_join(self, mini_catalog, mini_details):
        """Test only keys present in both tables survive."""
        merged = CatalogMerger().run(mini_catalog, mini_details)

        shared = set(mini_catalog['ID']) & set(mini_details['ProductID'])
        assert set(merged['ID']) == shared
        assert len(merged) == len(shared)

        # Orphan detail rows (IDs 1-3) and the last tenth of the catalog are gone
        assert not merged['ID'].isin([1, 2, 3]).any()
        assert len(merged) == 90

    def test_single_identifier_column(self, mini_catalog, mini_details):
        """Test the right key column is dropped after the join."""
        merged = CatalogMerger().run(mini_catalog, mini_details)

        assert 'ID' in merged.columns
        assert 'ProductID' not in merged.columns
        assert 'PrimaryColor' in merged.columns
        assert 'Price (INR)' in merged.columns

    def test_one_to_many_fan_out(self):
        """Test a repeated key in the secondary table fans out."""
        catalog = pd.DataFrame({'ID': [1, 2], 'ProductBrand': ['A', 'B']})
        details = pd.DataFrame({'ProductID': [1, 1, 2], 'NumImages': [3, 4, 5]})

        merged = CatalogMerger().run(catalog, details)

        assert len(merged) == 3
        assert sorted(merged.loc[merged['ID'] == 1, 'NumImages']) == [3, 4]

    def test_missing_keys_do_not_match(self):
        """Test missing identifiers on both sides are not joined."""
        catalog = pd.DataFrame({'ID': [1.0, np.nan], 'ProductBrand': ['A', 'B']})
        details = pd.DataFrame({'ProductID': [np.nan, 1.0], 'NumImages': [3, 4]})

        merged = CatalogMerger().run(catalog, details)

        assert len(merged) == 1
        assert merged['NumImages'].iloc[0] == 4

    def test_inputs_not_mutated(self, mini_catalog, mini_details):
        """Test the merge leaves its inputs untouched."""
        catalog_before = mini_catalog.copy()
        CatalogMerger().run(mini_catalog, mini_details)
        pd.testing.assert_frame_equal(mini_catalog, catalog_before)


class TestMergerErrors:
    """Test merger failure modes."""

    def test_missing_left_key(self, mini_details):
        catalog = pd.DataFrame({'SKU': [1]})
        with pytest.raises(MissingColumnError, match='ID'):
            CatalogMerger().run(catalog, mini_details)

    def test_missing_right_key(self, mini_catalog):
        details = pd.DataFrame({'SKU': [1]})
        with pytest.raises(MissingColumnError, match='ProductID'):
            CatalogMerger().run(mini_catalog, details)

    def test_custom_keys(self):
        """Test differently named keys can be configured."""
        left = pd.DataFrame({'sku': [1, 2], 'a': [1, 2]})
        right = pd.DataFrame({'item': [2], 'b': [9]})

        merged = CatalogMerger(left_key='sku', right_key='item').run(left, right)

        assert list(merged['sku']) == [2]
        assert 'item' not in merged.columns


class TestKeyTypes:
    """Test merging when the two files disagree on the identifier dtype."""

    def test_int_and_text_keys(self):
        """Test a stray text key in the details file does not abort the merge."""
        catalog = pd.DataFrame({'ID': [1, 2], 'ProductName': ['Tee', 'Kurta']})
        details = pd.DataFrame({'ProductID': ['1', 'x'], 'NumImages': [5, 3]})

        merged = CatalogMerger().run(catalog, details)

        assert len(merged) == 1
        assert merged['ProductName'].iloc[0] == 'Tee'
        assert merged['NumImages'].iloc[0] == 5

    def test_float_and_text_keys(self):
        """Test integral float keys match their text form."""
        catalog = pd.DataFrame({'ID': [1.0, 2.0], 'ProductName': ['Tee', 'Kurta']})
        details = pd.DataFrame({'ProductID': [' 2', 'abc'], 'NumImages': [4, 1]})

        merged = CatalogMerger().run(catalog, details)

        assert list(merged['ID']) == ['2']
        assert list(merged['ProductName']) == ['Kurta']

    def test_numeric_keys_unchanged(self, mini_catalog, mini_details):
        merged = CatalogMerger().run(mini_catalog, mini_details)
        assert pd.api.types.is_integer_dtype(merged['ID'])
