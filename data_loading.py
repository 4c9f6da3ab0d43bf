#!/usr/bin/env python3
"""
Data Loading Module

Utilities for loading IBI exports (CSV or Excel) from wearable/vitals apps.
The IBI column is detected by a header containing "IBI" (e.g. "IBI (mS)").
"""

import logging
import pandas as pd
from pathlib import Path
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

CSV_SUFFIXES = ('.csv',)
EXCEL_SUFFIXES = ('.xlsx',)
SUPPORTED_SUFFIXES = CSV_SUFFIXES + EXCEL_SUFFIXES

IBI_HEADER_TOKEN = 'IBI'
HEART_RATE_HEADER = 'HeartRate (bpm)'
VITALS_HEADERS = (HEART_RATE_HEADER, 'Systolic (mmHg)')


def _clean_header(header) -> str:
    return str(header).strip().strip('"').strip()


def load_ibi_table(data_path: Path) -> pd.DataFrame:
    """
    Load a tabular export with a header row.

    Args:
        data_path: Path to a .csv or .xlsx file

    Returns:
        DataFrame with cleaned headers and blank rows removed
    """
    data_path = Path(data_path)

    if not data_path.exists():
        raise FileNotFoundError(f"Data file not found: {data_path}")

    suffix = data_path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(f"Unsupported file type '{suffix}'. Please select a CSV (.csv) or Excel (.xlsx) file.")

    try:
        if suffix in CSV_SUFFIXES:
            df = pd.read_csv(data_path, skip_blank_lines=True, skipinitialspace=True)
        else:
            df = pd.read_excel(data_path)
    except Exception as e:
        raise IOError(f"Failed to read {data_path}: {str(e)}")

    df.columns = [_clean_header(c) for c in df.columns]

    # Rows where every cell is empty
    df = df.dropna(how='all').reset_index(drop=True)

    logger.info(f"Loaded {len(df)} rows from {data_path.name}")
    logger.info(f"  Columns: {df.columns.tolist()}")
    return df


def find_ibi_column(df: pd.DataFrame) -> Optional[str]:
    """First column whose header contains 'IBI', or None."""
    for col in df.columns:
        if IBI_HEADER_TOKEN in str(col):
            return col
    return None


def detect_data_type(columns: List[str]) -> str:
    """
    Classify an export by its headers.

    Returns:
        'secondary_vitals' for IBI exports, 'vitals' for heart-rate/blood-pressure
        exports, 'unknown' otherwise
    """
    columns = [str(c) for c in columns]
    if any(IBI_HEADER_TOKEN in c for c in columns):
        return 'secondary_vitals'
    if any(c in VITALS_HEADERS for c in columns):
        return 'vitals'
    return 'unknown'


def extract_ibi_values(df: pd.DataFrame) -> list:
    """Raw cell values of the IBI column (not yet validated)."""
    ibi_col = find_ibi_column(df)
    if ibi_col is None:
        raise ValueError(f"No IBI column found. Columns: {df.columns.tolist()}")
    return df[ibi_col].tolist()


def extract_heart_rate_values(df: pd.DataFrame) -> list:
    """Numeric heart-rate values of a vitals export, blanks and junk dropped."""
    if HEART_RATE_HEADER not in df.columns:
        raise ValueError(f"No '{HEART_RATE_HEADER}' column found. Columns: {df.columns.tolist()}")
    return pd.to_numeric(df[HEART_RATE_HEADER], errors='coerce').dropna().tolist()


def load_export(data_path: Path) -> Tuple[pd.DataFrame, str]:
    """
    Load an export and classify it by its headers.

    Returns:
        Tuple of (table, data_type)
    """
    df = load_ibi_table(data_path)
    data_type = detect_data_type(df.columns)
    logger.info(f"  Data type: {data_type}")
    return df, data_type
