"""
Product Table Validation
========================
Evaluates quality and consistency of the final derived table.

Metrics:
- Identifier uniqueness
- Price validity (negative / missing)
- Color fill completeness
- Price-range partition totality
- Outlier flag reproducibility from the output's own prices
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd

from .config import PipelineConfig
from .stage4_feature_derivation import (
    PRICE_RANGE_LABELS,
    compute_price_bounds,
    flag_outliers,
)

logger = logging.getLogger(__name__)


def evaluate_products(df: pd.DataFrame, config: Optional[PipelineConfig] = None) -> Dict[str, Any]:
    """
    Evaluate the cleaned and derived product table.

    Returns metrics plus a 0-100 quality score.
    """
    config = config or PipelineConfig()
    price = config.price_column
    color = config.color_column
    metrics = {}

    # Coverage
    metrics['total_records'] = len(df)
    metrics['duplicate_ids'] = int(df[config.left_key].duplicated().sum()) if config.left_key in df.columns else 0

    # Price validity
    metrics['negative_prices'] = int((df[price] < 0).sum())
    metrics['missing_prices'] = int(df[price].isna().sum())

    # Color fill
    colors = df[color]
    metrics['missing_colors'] = int((colors.isna() | (colors.astype(str).str.strip() == '')).sum())

    # Price range partition: every priced row is in exactly one range
    priced = df[df[price].notna()]
    if 'price_range' in df.columns:
        metrics['unassigned_price_ranges'] = int((~priced['price_range'].isin(PRICE_RANGE_LABELS)).sum())
    else:
        metrics['unassigned_price_ranges'] = len(priced)

    # Outlier flags reproduce from the output's own prices
    if 'outlier' in df.columns:
        bounds = compute_price_bounds(df[price], config.iqr_multiplier)
        recomputed = flag_outliers(df[price], bounds)
        metrics['outlier_mismatches'] = int((recomputed != df['outlier'].astype(bool)).sum())
        metrics['outlier_rate'] = float(df['outlier'].mean()) if len(df) > 0 else 0.0
    else:
        metrics['outlier_mismatches'] = 0
        metrics['outlier_rate'] = 0.0

    # Unmapped derived segments
    for col in ('age_group', 'new_gender'):
        if col in df.columns:
            metrics[f'missing_{col}'] = int(df[col].isna().sum())
            metrics[f'other_{col}'] = int((df[col] == 'Other').sum())

    quality_score = 100
    if metrics['duplicate_ids'] > 0:
        quality_score -= 10
    if metrics['negative_prices'] > 0:
        quality_score -= 20
    if metrics['missing_colors'] > 0:
        quality_score -= 20
    if metrics['unassigned_price_ranges'] > 0:
        quality_score -= 20
    if metrics['outlier_mismatches'] > 0:
        quality_score -= 20
    if metrics['missing_prices'] > metrics['total_records'] * 0.1:
        quality_score -= 10

    metrics['quality_score'] = max(quality_score, 0)
    return metrics


def save_metrics(metrics: Dict[str, Any], output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        json.dump(metrics, f, indent=2, default=_to_builtin)
    return output_path


def _to_builtin(value):
    if isinstance(value, np.generic):
        return value.item()
    return str(value)
