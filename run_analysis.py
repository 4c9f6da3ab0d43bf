#!/usr/bin/env python3
"""
HRV Analysis Pipeline - Main Script

Pipeline for a single IBI export:
1. Load the IBI column from a CSV/Excel file
2. Validate the IBI series and compute HRV metrics
3. Assess metrics and generate wellness interpretations
4. Save metrics, assessments, chart data and an overview plot
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import pandas as pd
import yaml

from data_loading import (
    load_export, find_ibi_column, extract_ibi_values, extract_heart_rate_values
)
from hrv_analysis import calculate_hrv_metrics
from interpretation import (
    assess_hrv_quality, interpret_frequency_domain,
    generate_wellness_insights, generate_vitals_insights, assessments_to_records
)
from visualization import (
    generate_ibi_scatter_data, generate_poincare_data,
    generate_ibi_histogram, generate_psd_plot_data, plot_hrv_overview
)


# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def load_config(config_path: str) -> dict:
    """Load YAML configuration file."""
    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def create_default_config() -> dict:
    """Create default configuration template."""
    return {
        'project': {
            'name': 'hrv-analysis',
            'output_dir': './output',
        },
        'data': {
            'input_path': '/path/to/secondary_vitals.csv',  # CSV or XLSX with an IBI column
        },
        'analysis': {
            'min_samples': 10,
            'max_ibi_ms': 3000.0,
            'histogram_bin_width_ms': 7.8125,
            'frequency_method': 'spectral',  # One of: spectral, proportional
            'resample_rate_hz': 4.0,
            'poincare_method': 'successive_differences',  # One of: successive_differences, ibi
        },
        'visualization': {
            'histogram_bins': 20,
            'save_plots': True,
        },
    }


def analysis_kwargs(cfg: dict) -> dict:
    """Keyword arguments for calculate_hrv_metrics from the 'analysis' section."""
    analysis = cfg.get('analysis', {}) or {}
    return {
        'frequency_method': analysis.get('frequency_method', 'spectral'),
        'poincare_method': analysis.get('poincare_method', 'successive_differences'),
        'bin_width': float(analysis.get('histogram_bin_width_ms', 7.8125)),
        'sample_rate_hz': float(analysis.get('resample_rate_hz', 4.0)),
        'min_samples': int(analysis.get('min_samples', 10)),
        'max_ibi_ms': float(analysis.get('max_ibi_ms', 3000.0)),
    }


def save_chart_data(metrics, output_dir: Path, histogram_bins: int = 20) -> None:
    """Write the chart point sets as CSV files."""
    ibi = metrics.raw_data['ibi_values']
    generate_ibi_scatter_data(ibi).to_csv(output_dir / 'ibi_scatter.csv', index=False)
    generate_poincare_data(ibi).to_csv(output_dir / 'poincare_points.csv', index=False)
    generate_ibi_histogram(ibi, bin_count=histogram_bins).to_csv(output_dir / 'ibi_histogram.csv', index=False)

    psd = generate_psd_plot_data(metrics.frequency)
    if psd is not None:
        psd.to_csv(output_dir / 'psd.csv', index=False)


def summarize_vitals_export(df: pd.DataFrame, output_dir: Path) -> dict:
    """
    Heart-rate insight for a vitals export, which has no IBI data to analyze.

    Returns:
        Pipeline result with 'metrics' set to None
    """
    heart_rates = extract_heart_rate_values(df)
    insights = generate_vitals_insights(heart_rates)
    logger.info(f"  Vitals export: {len(heart_rates)} heart-rate values, HRV analysis not applicable")
    for insight in insights:
        logger.info(f"  {insight}")

    output_dir.mkdir(parents=True, exist_ok=True)
    pd.DataFrame({'insight': insights}).to_csv(output_dir / 'insights.csv', index=False)

    return {
        'metrics': None,
        'assessments': None,
        'frequency_interpretations': None,
        'insights': insights,
        'data_type': 'vitals',
        'output_dir': output_dir,
    }


def run_analysis_pipeline(cfg: dict) -> Optional[dict]:
    """
    Main pipeline execution.

    Args:
        cfg: Configuration dict (see create_default_config)

    Returns:
        dict with 'metrics', 'assessments', 'frequency_interpretations',
        'insights', 'data_type' and 'output_dir'; None when the file does not
        contain enough valid IBI data. Vitals exports return heart-rate
        insights only, with 'metrics' None
    """
    logger.info("=" * 80)
    logger.info("HRV Analysis Pipeline")
    logger.info("=" * 80)

    project = cfg.get('project', {}) or {}
    vis_cfg = cfg.get('visualization', {}) or {}
    histogram_bins = int(vis_cfg.get('histogram_bins', 20))

    # ========================================================================
    # STEP 1: Load IBI data
    # ========================================================================
    logger.info("\n[STEP 1] Loading IBI data...")
    input_path = Path(cfg['data']['input_path'])
    df, data_type = load_export(input_path)

    if data_type == 'vitals':
        return summarize_vitals_export(df, Path(project.get('output_dir', './output')))

    raw_values = extract_ibi_values(df)
    logger.info(f"  IBI column '{find_ibi_column(df)}': {len(raw_values)} values")

    # ========================================================================
    # STEP 2: Compute HRV metrics
    # ========================================================================
    logger.info("\n[STEP 2] Computing HRV metrics...")
    metrics = calculate_hrv_metrics(raw_values, **analysis_kwargs(cfg))
    if metrics is None:
        logger.warning(f"  Insufficient valid IBI data in {input_path.name} - analysis skipped")
        return None

    # ========================================================================
    # STEP 3: Interpret metrics
    # ========================================================================
    logger.info("\n[STEP 3] Interpreting metrics...")
    assessments = assess_hrv_quality(metrics)
    frequency_interpretations = interpret_frequency_domain(metrics.frequency)
    insights = generate_wellness_insights(metrics)
    for a in assessments + frequency_interpretations:
        logger.info(f"  {a.metric}: {a.value} ({a.status}) - {a.interpretation}")
    for insight in insights:
        logger.info(f"  {insight}")

    # ========================================================================
    # STEP 4: Save outputs
    # ========================================================================
    logger.info("\n[STEP 4] Saving outputs...")
    output_dir = Path(project.get('output_dir', './output'))
    output_dir.mkdir(parents=True, exist_ok=True)

    pd.DataFrame([metrics.to_flat_dict()]).to_csv(output_dir / 'metrics_summary.csv', index=False)
    pd.DataFrame(
        assessments_to_records(assessments) + assessments_to_records(frequency_interpretations)
    ).to_csv(output_dir / 'assessments.csv', index=False)
    save_chart_data(metrics, output_dir, histogram_bins=histogram_bins)

    if vis_cfg.get('save_plots', True):
        plot_path = plot_hrv_overview(metrics, output_dir / 'hrv_overview.png',
                                      title=f"HRV Analysis - {input_path.name}",
                                      histogram_bins=histogram_bins)
        logger.info(f"  Saved overview plot: {plot_path}")

    # Print summary
    logger.info("\n" + "=" * 80)
    logger.info("PIPELINE SUMMARY")
    logger.info("=" * 80)
    for section in ('time_domain', 'geometric', 'poincare'):
        values = getattr(metrics, section)
        if values is None:
            continue
        for key, value in values.items():
            logger.info(f"  {section}.{key}: {value}")
    for key in ('total_power', 'lf_power', 'hf_power', 'lf_hf_ratio', 'method'):
        logger.info(f"  frequency.{key}: {metrics.frequency[key]}")

    logger.info("\n" + "=" * 80)
    logger.info("Pipeline completed successfully!")
    logger.info(f"Output saved to: {output_dir}")
    logger.info("=" * 80)

    return {
        'metrics': metrics,
        'assessments': assessments,
        'frequency_interpretations': frequency_interpretations,
        'insights': insights,
        'data_type': data_type,
        'output_dir': output_dir,
    }


def main():
    """Command-line interface."""
    parser = argparse.ArgumentParser(
        description='HRV Analysis Pipeline for IBI exports',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
            Examples:
            # Analyze a file with default settings
            python run_analysis.py --input secondary_vitals.csv

            # Run with existing config
            python run_analysis.py --config config.yaml

            # Create default config template
            python run_analysis.py --config config.yaml --create-config
            """
    )

    parser.add_argument(
        '--config', '-c',
        type=str,
        default=None,
        help='Path to YAML configuration file'
    )

    parser.add_argument(
        '--input', '-i',
        type=str,
        default=None,
        help='IBI export to analyze (overrides data.input_path)'
    )

    parser.add_argument(
        '--output-dir', '-o',
        type=str,
        default=None,
        help='Output directory (overrides project.output_dir)'
    )

    parser.add_argument(
        '--frequency-method',
        choices=['spectral', 'proportional'],
        default=None,
        help='Frequency-domain method (overrides analysis.frequency_method)'
    )

    parser.add_argument(
        '--create-config',
        action='store_true',
        help='Create default config template'
    )

    args = parser.parse_args()

    if args.create_config:
        if args.config is None:
            parser.error('--create-config requires --config')
        config = create_default_config()
        os.makedirs(os.path.dirname(args.config) or '.', exist_ok=True)
        with open(args.config, 'w') as f:
            yaml.dump(config, f, default_flow_style=False)
        print(f"Created default config template: {args.config}")
        print("Please edit the config file with your data paths and settings.")
        return

    if args.config is not None:
        if not Path(args.config).exists():
            raise FileNotFoundError(f"Config file not found: {args.config}")
        cfg = load_config(args.config)
    else:
        cfg = create_default_config()
        cfg['data']['input_path'] = None

    cfg.setdefault('data', {})
    cfg.setdefault('project', {})
    cfg.setdefault('analysis', {})
    if args.input is not None:
        cfg['data']['input_path'] = args.input
    if args.output_dir is not None:
        cfg['project']['output_dir'] = args.output_dir
    if args.frequency_method is not None:
        cfg['analysis']['frequency_method'] = args.frequency_method

    if not cfg['data'].get('input_path'):
        parser.error('No input file given (use --input or data.input_path in the config)')

    try:
        result = run_analysis_pipeline(cfg)
    except (OSError, ValueError) as e:
        logger.error(f"Analysis failed: {e}")
        sys.exit(1)

    if result is None:
        sys.exit(2)


if __name__ == '__main__':
    main()
