"""
Synthetic fire model and result tables shared by the FirePM tests.
"""

from pathlib import Path

import numpy as np
import pandas as pd

from config import (
    AMBIENT_TEMP,
    CLEAR_VISIBILITY,
    END_TIME,
    EXPONENTS,
    INPUT_BASES,
    OUTPUT_BASES,
    TEMP_THRESHOLD,
    TIME_STEP,
    VIS_THRESHOLD,
)


def true_outcome(output, sprinkler=INPUT_BASES["Sprinkler"], door=INPUT_BASES["Door"]):
    """Ground-truth outcome of the synthetic fire model."""
    values = {"Sprinkler": sprinkler, "Door": door}
    result = OUTPUT_BASES[output]
    for alias, exponent in EXPONENTS[output].items():
        result *= (values[alias] / INPUT_BASES[alias]) ** exponent
    return result


def make_table(aset_time=None, vis_time=None, end=END_TIME, step=TIME_STEP):
    """Result table whose temperature and visibility cross their thresholds at the given times.

    Both channels are linear ramps, so interpolated crossings are exact.
    ``None`` keeps a channel flat (its threshold is never crossed).
    """
    time = np.arange(0.0, end + step, step)
    temp = np.full_like(time, AMBIENT_TEMP)
    vis = np.full_like(time, CLEAR_VISIBILITY)
    if aset_time is not None:
        temp = AMBIENT_TEMP + (TEMP_THRESHOLD - AMBIENT_TEMP) * time / aset_time
    if vis_time is not None:
        vis = CLEAR_VISIBILITY - (CLEAR_VISIBILITY - VIS_THRESHOLD) * time / vis_time
    return pd.DataFrame({"Time": time, "TEMP_1": temp, "VIS_1": vis})


def model_table(sprinkler=INPUT_BASES["Sprinkler"], door=INPUT_BASES["Door"], shift=0.0):
    """Result table of the synthetic model for one input configuration."""
    return make_table(
        aset_time=true_outcome("ASET", sprinkler, door) + shift,
        vis_time=true_outcome("VIS", sprinkler, door) + shift,
    )


def write_result_csv(path, frame):
    """Write *frame* in the device-output layout: units line, quoted names, data."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write(",".join("s" if c == "Time" else "-" for c in frame.columns) + "\n")
        f.write(",".join(f'"{c}"' for c in frame.columns) + "\n")
        frame.to_csv(f, header=False, index=False)
    return path


def variable_table():
    """Configuration records of the synthetic study."""
    return [
        {"VarType": "ISP", "Alias": "Sprinkler", "FDS_VarName": "K_FACTOR", "BaseValue": "0.05", "LowerLimit": "0.04", "UpperLimit": "0.06"},
        {"VarType": "ISP", "Alias": "Door", "FDS_VarName": "DOOR_WIDTH", "BaseValue": "1.0", "LowerLimit": "0.8", "UpperLimit": "1.2"},
        {"VarType": "IRP", "Alias": "Sprinkler", "FDS_VarName": "K_FACTOR", "BaseValue": "0.05", "LowerLimit": "0.03", "UpperLimit": "0.07"},
        {"VarType": "IRP", "Alias": "Door", "FDS_VarName": "DOOR_WIDTH", "BaseValue": "1.0", "LowerLimit": "0.6", "UpperLimit": "1.4"},
        {"VarType": "I1C", "Alias": "Sprinkler", "FDS_VarName": "K_FACTOR", "BaseValue": "0.05", "LowerLimit": "0.04", "UpperLimit": "0.06", "Divisions": "-1"},
        {"VarType": "I1C", "Alias": "Door", "FDS_VarName": "DOOR_WIDTH", "BaseValue": "1.0", "LowerLimit": "0.8", "UpperLimit": "1.2", "Divisions": "1"},
        {"VarType": "I2C", "Alias": "Sprinkler", "FDS_VarName": "K_FACTOR", "BaseValue": "0.05", "LowerLimit": "0.04", "UpperLimit": "0.06", "Divisions": "1"},
        {"VarType": "I2C", "Alias": "Door", "FDS_VarName": "DOOR_WIDTH", "BaseValue": "1.0", "LowerLimit": "0.8", "UpperLimit": "1.2", "Divisions": "-1"},
        {"VarType": "O_P", "Alias": "ASET", "FDS_VarName": "TEMP_1", "TargetName": "Time", "CriticalValue": "60", "Divisions": "1"},
        {"VarType": "O_P", "Alias": "VIS", "FDS_VarName": "VIS_1", "TargetName": "Time", "CriticalValue": "5", "Divisions": "-1"},
    ]


SENSITIVITY_RUNS = [
    ("ISP_Sprinkler_0D04_1", {"sprinkler": 0.04}, 0.0),
    ("ISP_Sprinkler_0D06_1", {"sprinkler": 0.06}, 2.0),
    ("ISP_Sprinkler_0D06_2", {"sprinkler": 0.06}, -2.0),
    ("ISP_Door_0D8_1", {"door": 0.8}, 0.0),
    ("ISP_Door_1D2_1", {"door": 1.2}, 0.0),
]

RESPONSE_RUNS = [
    ("IRP_Sprinkler_0D03_1", {"sprinkler": 0.03}),
    ("IRP_Sprinkler_0D04_1", {"sprinkler": 0.04}),
    ("IRP_Sprinkler_0D06_1", {"sprinkler": 0.06}),
    ("IRP_Sprinkler_0D07_1", {"sprinkler": 0.07}),
    ("IRP_Door_0D6_1", {"door": 0.6}),
    ("IRP_Door_0D8_1", {"door": 0.8}),
    ("IRP_Door_1D2_1", {"door": 1.2}),
    ("IRP_Door_1D4_1", {"door": 1.4}),
]

COMBINED_RUNS = [
    ("I1C_Sprinkler_Door_1", {"sprinkler": 0.04, "door": 1.2}),
    ("I2C_Sprinkler_Door_1", {"sprinkler": 0.06, "door": 0.8}),
]


