"""
Pytest Configuration and Fixtures
==================================
Shared fixtures for catalog EDA tests.
"""

import pytest
import pandas as pd
import numpy as np
from pathlib import Path
import tempfile
import shutil

GENDERS = ['Men', 'Women', 'Boys', 'Girls', 'Unisex', 'Unisex Kids']
BRANDS = ['Roadster', 'HRX', 'Puma', 'Nike', 'Biba', 'Levis', 'Gucci']
COLORS = ['Blue', 'Black', 'Red', 'White', 'Green', 'blue', 'black', 'red']


@pytest.fixture(scope="session")
def project_root():
    """Get project root directory."""
    return Path(__file__).parent.parent


def generate_synthetic_catalog(n_rows: int) -> pd.DataFrame:
    """Generate synthetic products_catalog.csv content."""
    rng = np.random.RandomState(42)
    brands = rng.choice(BRANDS, n_rows)
    genders = rng.choice(GENDERS, n_rows)
    names = [f'{b} {g} T-shirt' for b, g in zip(brands, genders)]
    return pd.DataFrame({
        'ID': np.arange(10000, 10000 + n_rows),
        'ProductName': names,
        'ProductBrand': brands,
        'Gender': genders,
        'Price (INR)': rng.choice([299, 799, 1499, 2000, 2999, 7999, 10000, 15999, 45000], n_rows),
    })


def generate_synthetic_details(catalog: pd.DataFrame) -> pd.DataFrame:
    """Generate product_details.csv content for most catalog IDs plus a few orphans."""
    rng = np.random.RandomState(7)
    ids = list(catalog['ID'].iloc[: int(len(catalog) * 0.9)]) + [1, 2, 3]
    colors = list(rng.choice(COLORS, len(ids)).astype(object))
    colors[0] = np.nan
    colors[1] = ''
    descriptions = [f'A comfortable {c} cotton garment' for c in rng.choice(COLORS, len(ids))]
    return pd.DataFrame({
        'ProductID': ids,
        'NumImages': rng.randint(1, 10, len(ids)),
        'Description': descriptions,
        'PrimaryColor': colors,
    })


@pytest.fixture(scope="session")
def mini_catalog():
    """Minimal synthetic catalog table."""
    return generate_synthetic_catalog(100)


@pytest.fixture(scope="session")
def mini_details(mini_catalog):
    """Minimal synthetic details table keyed by ProductID."""
    return generate_synthetic_details(mini_catalog)


@pytest.fixture(scope="function")
def temp_dir():
    """Create a temporary directory for test outputs."""
    tmp = tempfile.mkdtemp()
    yield Path(tmp)
    shutil.rmtree(tmp)


@pytest.fixture(scope="function")
def csv_sources(temp_dir, mini_catalog, mini_details):
    """Write the synthetic sources to CSV and return their paths."""
    catalog_path = temp_dir / 'products_catalog.csv'
    details_path = temp_dir / 'product_details.csv'
    mini_catalog.to_csv(catalog_path, index=False)
    mini_details.to_csv(details_path, index=False)
    return catalog_path, details_path


@pytest.fixture(scope="session")
def merged_products():
    """Hand-built merged table covering the cleaning edge cases."""
    return pd.DataFrame({
        'ID': [1, 2, 3, 3, 4, 5],
        'ProductName': ['  Blue Denim Jacket ', 'Black Tee', 'Red Kurta', 'Red Kurta', 'Kids Shorts', 'Scarf'],
        'ProductBrand': ['Levis ', 'HRX', 'Biba', 'Biba', 'Puma', 'Gucci'],
        'Gender': ['Men', 'Women', 'Girls', 'Girls', 'Boys', 'Unisex'],
        'Price (INR)': [100.0, 500.0, 2000.0, 2000.0, 12000.0, np.nan],
        'NumImages': [5, 4, 7, 7, 3, 6],
        'Description': ['This blue jacket is warm', 'Black cotton tee', ' Red kurta ', ' Red kurta ',
                        'Shorts for kids', np.nan],
        'PrimaryColor': ['Blue', '  ', 'Red', 'Red', np.nan, 'Green '],
    })
