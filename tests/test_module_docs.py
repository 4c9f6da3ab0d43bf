import importlib

import pytest


@pytest.mark.parametrize('module_name', [
    'preprocessing', 'hr_metrics', 'frequency_domain', 'poincare', 'interpretation',
    'hrv_analysis', 'visualization', 'data_loading', 'run_analysis', 'batch_analyze',
])
def test_module_has_titled_docstring(module_name):
    doc = importlib.import_module(module_name).__doc__
    assert doc is not None
    title = doc.strip().splitlines()[0]
    assert title.endswith(('Module', 'Script', 'Exports'))
