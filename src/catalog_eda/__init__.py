"""
Catalog EDA
===========
Exploratory data analysis over a merged product catalog.

Stages:
1. Loader - Read catalog and detail CSVs into typed tables
2. Merger - Inner-join on product identifier
3. Cleaner - Deduplicate, fill colors, trim text, rename price
4. Feature Deriver - Outliers, price ranges, gender segments, text flags
5. Aggregator - Summary statistics, rankings, segments, correlations
"""

from .config import PipelineConfig
from .schema import ProductSchema, MissingColumnError
from .stage1_loader import CatalogLoader
from .stage2_merger import CatalogMerger
from .stage3_cleaner import CatalogCleaner
from .stage4_feature_derivation import FeatureDeriver, UnmappedGenderError
from .stage5_aggregation import CatalogAggregator, AggregationReport

__all__ = [
    'PipelineConfig',
    'ProductSchema',
    'MissingColumnError',
    'CatalogLoader',
    'CatalogMerger',
    'CatalogCleaner',
    'FeatureDeriver',
    'UnmappedGenderError',
    'CatalogAggregator',
    'AggregationReport',
]
