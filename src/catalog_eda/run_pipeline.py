"""
Catalog EDA Pipeline Runner
===========================
Runs all stages sequentially, each consuming the previous stage's table.

Usage:
    python -m catalog_eda.run_pipeline
    python -m catalog_eda.run_pipeline --catalog data/products_catalog.csv \
        --details data/product_details.csv --output-dir reports
    python -m catalog_eda.run_pipeline --no-charts --unmapped-gender raise

Output files (in --output-dir):
    - *.png charts
    - quality_metrics.json
"""

import argparse
import logging
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from .config import PipelineConfig, UNMAPPED_GENDER_POLICIES
from .stage1_loader import CatalogLoader, preview_table
from .stage2_merger import CatalogMerger
from .stage3_cleaner import CatalogCleaner
from .stage4_feature_derivation import FeatureDeriver
from .stage5_aggregation import CatalogAggregator, print_report
from .charts import ChartRenderer
from .validation import evaluate_products, save_metrics

logger = logging.getLogger(__name__)


class PipelineStageError(RuntimeError):
    """A pipeline stage failed; the run is aborted."""

    def __init__(self, stage: str, cause: BaseException):
        self.stage = stage
        self.cause = cause
        super().__init__(f"Stage '{stage}' failed: {type(cause).__name__}: {cause}")


@contextmanager
def stage(name: str):
    """Time a stage and re-raise any failure as PipelineStageError naming it."""
    start = time.time()
    try:
        yield
    except PipelineStageError:
        raise
    except Exception as e:
        raise PipelineStageError(name, e) from e
    logger.info(f"Stage '{name}' completed in {time.time() - start:.2f}s")


def run_full_pipeline(config: Optional[PipelineConfig] = None, verbose: bool = True) -> Dict[str, Any]:
    """
    Run the complete EDA pipeline.

    Parameters
    ----------
    config : PipelineConfig, optional
        Paths, keys, thresholds and policies (defaults if omitted)
    verbose : bool
        Print source previews and the report tables to the console

    Returns
    -------
    dict
        products (final table), report, charts, metrics
    """
    config = config or PipelineConfig()
    output_dir = Path(config.output_dir)
    total_start = time.time()

    if verbose:
        print("=" * 70)
        print("Catalog EDA Pipeline")
        print("=" * 70)

    with stage('load'):
        catalog_df, details_df = CatalogLoader().run(config.catalog_path, config.details_path)
    if verbose:
        preview_table(catalog_df, 'Catalog')
        preview_table(details_df, 'Details')

    with stage('merge'):
        merged_df = CatalogMerger(config.left_key, config.right_key).run(catalog_df, details_df)

    with stage('clean'):
        clean_df = CatalogCleaner(
            color_column=config.color_column,
            color_fill_value=config.color_fill_value,
            raw_price_column=config.raw_price_column,
            price_column=config.price_column,
        ).run(merged_df)

    with stage('derive'):
        products_df = FeatureDeriver(
            price_column=config.price_column,
            color_column=config.color_column,
            lower_price_threshold=config.lower_price_threshold,
            upper_price_threshold=config.upper_price_threshold,
            iqr_multiplier=config.iqr_multiplier,
            unmapped_gender=config.unmapped_gender,
            color_match_case_sensitive=config.color_match_case_sensitive,
        ).run(clean_df)

    with stage('aggregate'):
        report = CatalogAggregator(
            top_n=config.top_n,
            top_n_per_group=config.top_n_per_group,
            price_column=config.price_column,
            color_column=config.color_column,
            popular_colors=config.popular_colors,
        ).run(products_df)
    if verbose:
        print_report(report)

    charts = []
    if config.render_charts:
        with stage('charts'):
            charts = ChartRenderer(
                output_dir,
                price_column=config.price_column,
                color_column=config.color_column,
                lower_price_threshold=config.lower_price_threshold,
                dpi=config.chart_dpi,
            ).render_all(products_df, report)

    with stage('validate'):
        metrics = evaluate_products(products_df, config)
        metrics_path = save_metrics(
            {**metrics, 'config': config.to_dict()},
            output_dir / 'quality_metrics.json'
        )
    logger.info(f"Quality score: {metrics['quality_score']}/100 ({metrics_path})")

    if verbose:
        print("\n" + "=" * 70)
        print("PIPELINE COMPLETE")
        print("=" * 70)
        print(f"\nTotal time: {time.time() - total_start:.1f}s")
        print(f"Products: {len(products_df):,}")
        print(f"Charts written: {len(charts)}")
        print(f"Quality score: {metrics['quality_score']}/100")

    return {
        'products': products_df,
        'report': report,
        'charts': charts,
        'metrics': metrics,
    }


def build_parser() -> argparse.ArgumentParser:
    defaults = PipelineConfig()
    parser = argparse.ArgumentParser(description='Run the product catalog EDA pipeline')
    parser.add_argument('--catalog', default=defaults.catalog_path,
                        help='Product catalog CSV keyed by ID')
    parser.add_argument('--details', default=defaults.details_path,
                        help='Product details CSV keyed by ProductID')
    parser.add_argument('--output-dir', default=defaults.output_dir,
                        help='Directory for charts and quality metrics')
    parser.add_argument('--top-n', type=int, default=defaults.top_n,
                        help=f'Rows in ranked tables (default: {defaults.top_n})')
    parser.add_argument('--unmapped-gender', choices=UNMAPPED_GENDER_POLICIES,
                        default=defaults.unmapped_gender,
                        help='How to derive segments for unknown Gender values')
    parser.add_argument('--no-charts', action='store_true',
                        help='Skip chart rendering')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    config = PipelineConfig(
        catalog_path=args.catalog,
        details_path=args.details,
        output_dir=args.output_dir,
        top_n=args.top_n,
        unmapped_gender=args.unmapped_gender,
        render_charts=not args.no_charts,
    )

    try:
        run_full_pipeline(config)
    except PipelineStageError as e:
        logger.error(f"Pipeline aborted at stage '{e.stage}': {e.cause}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
