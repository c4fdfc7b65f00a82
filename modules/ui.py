import pandas as pd
import streamlit as st

from modules.calculations import DemandNormalizer
from modules.models import DEFAULT_FABRIC_SIZES, FabricSize

CATALOG_COLUMNS = ["size", "weekly_demand"]


def init_app_state():
    defaults = {
        'fabric_sizes': list(DEFAULT_FABRIC_SIZES),
        'last_result': None,
        'last_length': None,
        'catalog_key_counter': 0,
    }
    for k, v in defaults.items():
        if k not in st.session_state:
            st.session_state[k] = v


def reset_catalog():
    st.session_state.fabric_sizes = list(DEFAULT_FABRIC_SIZES)
    st.session_state.last_result = None
    st.session_state.last_length = None
    # New editor key drops the widget's own edit buffer
    st.session_state.catalog_key_counter += 1


def catalog_to_dataframe(sizes) -> pd.DataFrame:
    """Editable view of the catalogue with derived share and class columns."""
    normalized = DemandNormalizer.normalize(sizes)
    rows = []
    for item in normalized:
        rows.append({
            "size": item.size,
            "weekly_demand": item.weekly_demand,
            "share": round(item.probability * 100, 1),
            "class": "Priority" if DemandNormalizer.is_priority(item) else "Optional",
        })
    return pd.DataFrame(rows, columns=CATALOG_COLUMNS + ["share", "class"])


def catalog_from_dataframe(df: pd.DataFrame):
    sizes = []
    for _, row in df.iterrows():
        if pd.isna(row['size']):
            continue
        demand = 0 if pd.isna(row['weekly_demand']) else int(row['weekly_demand'])
        sizes.append(FabricSize(float(row['size']), demand))
    return sizes
