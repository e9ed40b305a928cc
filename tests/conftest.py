"""
Shared pytest fixtures for FirePM tests.
"""

import contextlib
import io

import pytest

from config import OUTPUT_BASES
from synthetic import COMBINED_RUNS, RESPONSE_RUNS, SENSITIVITY_RUNS, model_table, variable_table, write_result_csv


@pytest.fixture
def variable_records():
    """Configuration records of the synthetic study."""
    return variable_table()


@pytest.fixture
def output_spec():
    """Increasing-temperature output spec."""
    from firepm.core.variables import VariableSpec

    return VariableSpec.from_record(variable_table()[-2])


@pytest.fixture
def visibility_spec():
    """Decreasing-visibility output spec."""
    from firepm.core.variables import VariableSpec

    return VariableSpec.from_record(variable_table()[-1])


@pytest.fixture
def registry():
    """Registry of the synthetic study."""
    from firepm.core.variables import VariableRegistry

    return VariableRegistry(variable_table())


@pytest.fixture
def study_runs():
    """All simulation runs of the synthetic study, in memory."""
    from firepm.core.records import SimulationRun

    runs = []
    for name, values, shift in SENSITIVITY_RUNS:
        runs.append(SimulationRun(name, model_table(shift=shift, **values), study_code="ISP"))
    for name, values in RESPONSE_RUNS:
        runs.append(SimulationRun(name, model_table(**values), study_code="IRP"))
    for name, values in COMBINED_RUNS:
        runs.append(SimulationRun(name, model_table(**values), study_code=name[:3]))
    return runs


@pytest.fixture
def study_dir(tmp_path):
    """Directory tree of the synthetic study: baseline plus one directory per study code."""
    write_result_csv(tmp_path / "base" / "base_devc.csv", model_table())
    for name, values, shift in SENSITIVITY_RUNS:
        write_result_csv(tmp_path / "ISP" / f"{name}_devc.csv", model_table(shift=shift, **values))
    for name, values in RESPONSE_RUNS:
        write_result_csv(tmp_path / "IRP" / f"{name}_devc.csv", model_table(**values))
    for name, values in COMBINED_RUNS:
        write_result_csv(tmp_path / name[:3] / f"{name}_devc.csv", model_table(**values))
    return tmp_path


@pytest.fixture
def suppress_output():
    """Silence console output of the model during a test."""
    with contextlib.redirect_stdout(io.StringIO()), contextlib.redirect_stderr(io.StringIO()):
        yield


@pytest.fixture
def study(suppress_output, variable_records, study_runs):
    """FirePM study with explicit baseline values and all runs in memory."""
    from firepm import FirePM

    model = FirePM(variable_records)
    model.set_baseline_values(OUTPUT_BASES)
    for run in study_runs:
        model.add_run(run.name, list(run.tables), study_code=run.study_code)
    return model
