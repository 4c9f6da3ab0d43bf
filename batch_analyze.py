#!/usr/bin/env python3
"""
Batch Processing Pipeline for Multiple IBI Exports

Analyzes every CSV/Excel export in a directory and writes a comparative
summary of the key HRV metrics.
"""

import argparse
import copy
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd

from data_loading import SUPPORTED_SUFFIXES
from run_analysis import create_default_config, load_config, run_analysis_pipeline

logger = logging.getLogger(__name__)

SUMMARY_METRICS = [
    ('time_domain', 'mean_nn'),
    ('time_domain', 'sdnn'),
    ('time_domain', 'rmssd'),
    ('time_domain', 'pnn50'),
    ('time_domain', 'mean_hr'),
    ('frequency', 'lf_hf_ratio'),
    ('frequency', 'hf_power'),
    ('frequency', 'method'),
    ('poincare', 'sd1'),
    ('poincare', 'sd2'),
]


def find_input_files(data_dir: Path) -> List[Path]:
    """All supported exports in data_dir (non-recursive), sorted by name."""
    data_dir = Path(data_dir)
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Input directory not found: {data_dir}")
    return sorted(p for p in data_dir.iterdir() if p.is_file() and p.suffix.lower() in SUPPORTED_SUFFIXES)


def process_file(input_path: Path, batch_output_dir: Path, base_cfg: dict) -> dict:
    """
    Run the analysis pipeline for one export.

    Returns:
        dict with processing status and summary metrics
    """
    logger.info(f"Processing file: {input_path.name}")

    cfg = copy.deepcopy(base_cfg)
    cfg.setdefault('data', {})['input_path'] = str(input_path)
    cfg.setdefault('project', {})['output_dir'] = str(batch_output_dir / input_path.stem)

    try:
        result = run_analysis_pipeline(cfg)
    except (OSError, ValueError) as e:
        logger.error(f"  ✗ Failed: {e}")
        return {'file': input_path.name, 'status': 'FAILED', 'reason': str(e)}

    if result is None:
        logger.warning("  ✗ Insufficient data")
        return {'file': input_path.name, 'status': 'INSUFFICIENT_DATA'}

    if result['metrics'] is None:
        logger.info("  Vitals export, HRV analysis skipped")
        return {'file': input_path.name, 'status': 'VITALS_ONLY',
                'reason': ' '.join(result['insights'])}

    metrics = result['metrics']
    row = {
        'file': input_path.name,
        'status': 'SUCCESS',
        'sample_count': metrics.raw_data['sample_count'],
        'outliers': metrics.raw_data['outliers'],
        'quality': metrics.raw_data['quality'],
    }
    for section, key in SUMMARY_METRICS:
        values = getattr(metrics, section)
        row[key] = values[key] if values is not None else None
    row['rmssd_status'] = result['assessments'][0].status
    logger.info(f"  ✓ RMSSD {row['rmssd']} ms ({row['rmssd_status']})")
    return row


def main(data_dir: Path, output_base: Path = Path('./output_batch'),
         base_cfg: Optional[dict] = None):
    """
    Process every export in data_dir and generate a summary report.

    Returns:
        Tuple of (batch_output_dir, summary_df)
    """
    logger.info("=" * 80)
    logger.info("BATCH HRV ANALYSIS")
    logger.info("=" * 80)

    if base_cfg is None:
        base_cfg = create_default_config()

    input_files = find_input_files(data_dir)
    logger.info(f"Files to process: {len(input_files)}")

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    batch_output_dir = Path(output_base) / f'batch_{timestamp}'
    batch_output_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"\nOutput directory: {batch_output_dir}")

    results = []
    for idx, input_path in enumerate(input_files, 1):
        logger.info(f"\n[{idx}/{len(input_files)}] {input_path.name}")
        results.append(process_file(input_path, batch_output_dir, base_cfg))

    summary_df = pd.DataFrame(results, columns=None if results else ['file', 'status'])

    logger.info("\n" + "=" * 80)
    logger.info("BATCH PROCESSING SUMMARY")
    logger.info("=" * 80)
    logger.info(f"\nTotal files: {len(summary_df)}")
    for status, count in summary_df['status'].value_counts().items():
        logger.info(f"  {status}: {count}")

    summary_path = batch_output_dir / 'batch_summary.csv'
    summary_df.to_csv(summary_path, index=False)
    logger.info(f"\n✓ Summary saved: {summary_path}")

    successful_df = summary_df[summary_df['status'] == 'SUCCESS']
    if len(successful_df) > 1:
        logger.info("\nComparative metrics (successful files):")
        for key in ('rmssd', 'sdnn', 'mean_hr'):
            values = successful_df[key].dropna()
            if len(values) > 0:
                logger.info(f"  {key}: {values.mean():.1f} ± {values.std():.1f}")

    return batch_output_dir, summary_df


def cli():
    parser = argparse.ArgumentParser(description='Batch HRV analysis of IBI exports')
    parser.add_argument('data_dir', help='Directory with CSV/XLSX exports')
    parser.add_argument('--output-base', default='./output_batch', help='Base directory for batch outputs')
    parser.add_argument('--config', '-c', default=None, help='YAML config applied to every file')
    parser.add_argument('--no-plots', action='store_true', help='Skip overview plots')

    args = parser.parse_args()

    base_cfg = load_config(args.config) if args.config else create_default_config()
    if args.no_plots:
        base_cfg.setdefault('visualization', {})['save_plots'] = False

    batch_dir, summary = main(Path(args.data_dir), Path(args.output_base), base_cfg)

    print("\n" + "=" * 80)
    print("PROCESSING SUMMARY")
    print("=" * 80)
    print(summary.to_string())
    print(f"\nOutput directory: {batch_dir}")


if __name__ == '__main__':
    cli()
