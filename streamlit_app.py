import os
import logging
from datetime import datetime

import streamlit as st

from modules.calculations import DemandNormalizer
from modules.models import InvalidCatalogEntry
from modules.optimization import calculate_optimal_cuts
from modules.ui import init_app_state, reset_catalog, catalog_to_dataframe, catalog_from_dataframe
from modules.utils import Visualizer, Exporter, PDF_AVAILABLE, format_length

# -----------------------------------------------------------------------------
# 1. CONFIGURATION
# -----------------------------------------------------------------------------

LOG_LEVEL = os.getenv("FABRICCUT_LOG_LEVEL", "INFO").upper()
PANNA_SIZE = float(os.getenv("FABRICCUT_PANNA_SIZE", "97"))

logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO), format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger("FabricCut")

st.set_page_config(
    page_title="Fabric Cutting Calculator",
    page_icon="✂️",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    .main .block-container { padding-top: 2rem; padding-bottom: 3rem; background-color: #f8fafc; }
    h1, h2, h3, h4, h5 { font-family: 'Segoe UI', sans-serif; font-weight: 600; color: #1e293b; }
    .machine-header-cut { border-bottom: 4px solid #2563eb; color: #2563eb; padding: 5px 0; font-weight: 700; font-size: 1.2rem; margin-bottom: 15px; text-transform: uppercase; }
    .machine-header-demand { border-bottom: 4px solid #64748b; color: #64748b; padding: 5px 0; font-weight: 700; font-size: 1.2rem; margin-bottom: 15px; text-transform: uppercase; }
    div[data-testid="stVerticalBlockBorderWrapper"] { background-color: #ffffff; border: 1px solid #e2e8f0; border-radius: 8px; padding: 1.5rem; }
    div[data-testid="stMetric"] { background-color: #ffffff; border: 1px solid #cbd5e1; border-radius: 8px; padding: 15px; }
</style>
""", unsafe_allow_html=True)

# -----------------------------------------------------------------------------
# 2. DEMAND CATALOGUE
# -----------------------------------------------------------------------------

def render_demand_editor():
    st.markdown('<div class="machine-header-demand">📊 WEEKLY DEMAND</div>', unsafe_allow_html=True)
    st.caption("Sizes with a demand share of 15% or more are priority sizes and are always cut "
               "when a zero-leftover plan exists. Optional sizes may be left out.")

    df_catalog = catalog_to_dataframe(st.session_state.fabric_sizes)
    edited_df = st.data_editor(
        df_catalog,
        hide_index=True,
        use_container_width=True,
        num_rows="dynamic",
        column_config={
            "size": st.column_config.NumberColumn("Size (m)", min_value=0.01, step=0.25, format="%.2f"),
            "weekly_demand": st.column_config.NumberColumn("Weekly demand", min_value=0, step=1, format="%d"),
            "share": st.column_config.NumberColumn("Share (%)", format="%.1f"),
            "class": st.column_config.TextColumn("Class", width="small"),
        },
        disabled=["share", "class"],
        key=f"catalog_editor_{st.session_state.catalog_key_counter}"
    )

    sizes = catalog_from_dataframe(edited_df)
    try:
        DemandNormalizer.validate(sizes)
    except InvalidCatalogEntry as e:
        st.error(f"⚠️ {e}")
        return False

    if sizes != st.session_state.fabric_sizes:
        st.session_state.fabric_sizes = sizes
        # Results were computed for the old demand
        st.session_state.last_result = None
        st.session_state.catalog_key_counter += 1
        st.rerun()

    total_demand = sum(s.weekly_demand for s in sizes)
    st.caption(f"Total weekly demand: {total_demand}")
    if st.button("↩️ Reset to defaults", type="secondary"):
        reset_catalog()
        st.rerun()
    return True

# -----------------------------------------------------------------------------
# 3. CUT CALCULATOR
# -----------------------------------------------------------------------------

def render_calculator(catalog_ok: bool):
    st.markdown('<div class="machine-header-cut">✂️ CUT CALCULATOR</div>', unsafe_allow_html=True)

    with st.form(key="length_form"):
        raw_length = st.text_input("Total fabric length (m)", placeholder="e.g. 32.5")
        submitted = st.form_submit_button("🔄 Calculate", type="primary", use_container_width=True, disabled=not catalog_ok)

    if submitted:
        length = DemandNormalizer.coerce_length(raw_length)
        if length is None:
            st.warning("Please enter a positive length in meters.")
        else:
            with st.spinner("Searching for a zero-leftover plan..."):
                result = calculate_optimal_cuts(length, st.session_state.fabric_sizes, PANNA_SIZE)
            logger.info("Calculated %.3f m: %d pieces, leftover %.3f m", length, result.total_pieces, result.leftover)
            st.session_state.last_result = result
            st.session_state.last_length = length

    result = st.session_state.last_result
    length = st.session_state.last_length
    if result is None:
        st.info("Enter a length to get a cut plan.")
        return

    st.divider()
    if result.is_perfect:
        st.success(f"🎯 Perfect cut: {format_length(length)} m used without any leftover.")
    elif result.cuts:
        st.warning(f"No zero-leftover combination found. Best plan leaves {result.leftover:.3f} m.")

    st.dataframe(
        Exporter.cuts_to_dataframe(result),
        hide_index=True,
        use_container_width=True,
        column_config={
            "Size (m)": st.column_config.NumberColumn(format="%.2f"),
            "Total (m)": st.column_config.NumberColumn(format="%.3f"),
        }
    )

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total used", f"{result.total_used:.3f} m")
    c2.metric("Total pieces", f"{result.total_pieces}")
    c3.metric("Leftover", f"{result.leftover:.3f} m")
    c4.metric("Fabric area", f"{result.fabric_area:.2f} m²", f"Panna {format_length(result.panna_size)} cm", delta_color="off")

    fig = Visualizer.plot_cut_plan(result, length)
    if fig is not None:
        st.pyplot(fig)

    fname_base = f"Cuts_{format_length(length)}m_{datetime.now().strftime('%Y%m%d')}"
    col_excel, col_pdf = st.columns(2)
    col_excel.download_button("📥 Excel", Exporter.to_excel(result, length), f"{fname_base}.xlsx", use_container_width=True)
    if PDF_AVAILABLE:
        col_pdf.download_button("📄 PDF", Exporter.to_pdf_cutlist(result, length, f"{format_length(length)} m roll"),
                                f"{fname_base}.pdf", "application/pdf", use_container_width=True)

# -----------------------------------------------------------------------------
# 4. MAIN
# -----------------------------------------------------------------------------

def main():
    init_app_state()
    st.title("✂️ Fabric Cutting Calculator")
    st.caption("Zero-leftover cut plans based on weekly demand.")

    c_calc, c_demand = st.columns([1.6, 1.4])
    with c_demand:
        with st.container(border=True):
            catalog_ok = render_demand_editor()
    with c_calc:
        with st.container(border=True):
            render_calculator(catalog_ok)

if __name__ == "__main__":
    main()
