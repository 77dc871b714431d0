# adas_scrub/io_excel.py
import pandas as pd
from .mapping import MAP_IN2INTERNAL

# Internal columns added when missing (RO_Number is not required)
_INTERNAL_REQUIRED = [
    "Estimate_Text", "Report_Calibrations", "Report_Stated_Count",
]

def load_ro_excel(file):
    df = pd.read_excel(file, dtype=str)
    # Rename by map (when a column matches)
    cols = {}
    for k, v in MAP_IN2INTERNAL.items():
        if k in df.columns and v not in cols.values():
            cols[k] = v
    df = df.rename(columns=cols)

    for need in _INTERNAL_REQUIRED:
        if need not in df.columns:
            df[need] = None

    return df

def write_result(df, path="RO_scrubbed.xlsx"):
    df.to_excel(path, index=False)
    return path
