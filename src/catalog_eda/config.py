"""
Pipeline Configuration
======================
All tunables for the catalog EDA pipeline in one place.
"""

from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Tuple, Dict, Any

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

UNMAPPED_GENDER_POLICIES = ('other', 'null', 'raise')


@dataclass
class PipelineConfig:
    """Catalog EDA pipeline configuration."""
    # Paths
    catalog_path: str = str(PROJECT_ROOT / 'raw_data' / 'products_catalog.csv')
    details_path: str = str(PROJECT_ROOT / 'raw_data' / 'product_details.csv')
    output_dir: str = str(PROJECT_ROOT / 'reports')

    # Join keys
    left_key: str = 'ID'
    right_key: str = 'ProductID'

    # Cleaning
    raw_price_column: str = 'Price (INR)'
    price_column: str = 'Price'
    color_column: str = 'PrimaryColor'
    color_fill_value: str = 'Others'

    # Feature derivation
    lower_price_threshold: float = 2000.0
    upper_price_threshold: float = 10000.0
    iqr_multiplier: float = 1.5
    unmapped_gender: str = 'other'   # 'other' | 'null' | 'raise'
    color_match_case_sensitive: bool = True

    # Reporting
    top_n: int = 10
    top_n_per_group: int = 5
    popular_colors: Tuple[str, ...] = ('blue', 'black', 'red')
    render_charts: bool = True
    chart_dpi: int = 100

    def __post_init__(self):
        if self.unmapped_gender not in UNMAPPED_GENDER_POLICIES:
            raise ValueError(
                f"Unknown unmapped_gender policy: {self.unmapped_gender} "
                f"(expected one of {', '.join(UNMAPPED_GENDER_POLICIES)})"
            )
        if self.lower_price_threshold >= self.upper_price_threshold:
            raise ValueError("lower_price_threshold must be below upper_price_threshold")
        if self.top_n < 1:
            raise ValueError(f"top_n must be positive, got {self.top_n}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
