import pandas as pd
import pytest

from data_loading import (
    load_ibi_table,
    find_ibi_column,
    detect_data_type,
    extract_ibi_values,
    extract_heart_rate_values,
    load_export,
)


def write_csv(path, text):
    path.write_text(text)
    return path


def test_load_csv_with_quoted_cells_and_blank_lines(tmp_path):
    path = write_csv(tmp_path / 'secondary_vitals.csv',
                     '"Time", "IBI (mS)"\n'
                     '"10:00:00","800"\n'
                     '\n'
                     '"10:00:01","810"\n'
                     '"10:00:02",""\n')
    df = load_ibi_table(path)
    assert df.columns.tolist() == ['Time', 'IBI (mS)']
    assert len(df) == 3
    df, data_type = load_export(path)
    values = extract_ibi_values(df)
    assert data_type == 'secondary_vitals'
    assert values[:2] == [800, 810]
    assert pd.isna(values[2])


def test_load_excel(tmp_path):
    path = tmp_path / 'export.xlsx'
    pd.DataFrame({'Time': ['a', 'b', 'c'], 'IBI (mS)': [800, 805, 795]}).to_excel(path, index=False)
    df, data_type = load_export(path)
    assert extract_ibi_values(df) == [800, 805, 795]
    assert data_type == 'secondary_vitals'


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_ibi_table(tmp_path / 'missing.csv')


def test_unsupported_suffix(tmp_path):
    path = write_csv(tmp_path / 'data.txt', 'IBI\n800\n')
    with pytest.raises(ValueError, match='Unsupported file type'):
        load_ibi_table(path)


def test_no_ibi_column(tmp_path):
    path = write_csv(tmp_path / 'vitals.csv', 'HeartRate (bpm),Systolic (mmHg)\n72,120\n')
    df = load_ibi_table(path)
    assert find_ibi_column(df) is None
    assert detect_data_type(df.columns) == 'vitals'
    with pytest.raises(ValueError, match='No IBI column'):
        extract_ibi_values(df)


@pytest.mark.parametrize('columns, data_type', [
    (['Time', 'IBI (mS)'], 'secondary_vitals'),
    (['HeartRate (bpm)'], 'vitals'),
    (['Systolic (mmHg)', 'Diastolic (mmHg)'], 'vitals'),
    (['foo', 'bar'], 'unknown'),
    ([], 'unknown'),
])
def test_detect_data_type(columns, data_type):
    assert detect_data_type(columns) == data_type


def test_first_ibi_column_wins():
    df = pd.DataFrame({'IBI (mS)': [800], 'IBI raw': [1]})
    assert find_ibi_column(df) == 'IBI (mS)'


def test_legacy_xls_is_rejected(tmp_path):
    # Only .xlsx workbooks are readable with the openpyxl engine
    path = write_csv(tmp_path / 'export.xls', '')
    with pytest.raises(ValueError, match='Unsupported file type'):
        load_ibi_table(path)


def test_extract_heart_rate_values(tmp_path):
    path = write_csv(tmp_path / 'vitals.csv',
                     'Time,HeartRate (bpm),Systolic (mmHg)\n'
                     '1,72,120\n'
                     '2,,118\n'
                     '3,"105",121\n')
    df, data_type = load_export(path)
    assert data_type == 'vitals'
    assert extract_heart_rate_values(df) == [72.0, 105.0]


def test_extract_heart_rate_values_requires_column():
    df = pd.DataFrame({'Systolic (mmHg)': [120]})
    with pytest.raises(ValueError, match='HeartRate'):
        extract_heart_rate_values(df)
