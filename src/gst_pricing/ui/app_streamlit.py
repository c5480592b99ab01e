"""
Streamlit document editor for GST line items.

Features:
- Editable line grid with catalog tax labels
- Live totals with CGST/SGST or IGST split
- Tax summary and amount in words for the printable preview
- Export to CSV / JSON payload
"""
import json
import sys
from datetime import datetime
from pathlib import Path

import pandas as pd
import streamlit as st

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from gst_pricing.config.settings import get_settings
from gst_pricing.engine import PricingEngine, SupplyMode, TaxCatalog
from gst_pricing.services import document_service as docs
from gst_pricing.services.preview import amount_in_words, format_inr, lines_frame, tax_summary


st.set_page_config(
    page_title="GST Document Pricing",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_engine():
    """Get cached engine instance."""
    return PricingEngine(get_settings())


@st.cache_resource
def get_tax_catalog():
    """Get cached tax catalog."""
    return TaxCatalog.load(get_settings().tax_catalog_path)


try:
    engine = get_engine()
    tax_catalog = get_tax_catalog()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()

tax_labels = [o.label for o in tax_catalog.options()]


def line_grid(state) -> pd.DataFrame:
    """Editable grid rows for a document's line items."""
    return pd.DataFrame([{
        'Item': item.name,
        'HSN/SAC': item.hsn_sac,
        'Quantity': item.quantity,
        'Rate': item.rate,
        'Discount': item.discount.value,
        'Discount Type': item.discount.type.value,
        'Tax': item.tax_label,
    } for item in state.items])


# ============================================================================
# SIDEBAR: Document Context
# ============================================================================
with st.sidebar:
    st.header("🧾 Document")

    profiles = engine.settings.document_profiles
    document_type = st.selectbox(
        "Document Type",
        options=list(profiles),
        format_func=lambda key: profiles[key].name,
    )
    supply_mode = st.radio(
        "Supply",
        options=[SupplyMode.INTRA_STATE, SupplyMode.INTER_STATE],
        format_func=lambda m: "Intra-state (CGST + SGST)" if m == SupplyMode.INTRA_STATE else "Inter-state (IGST)",
    )

    if 'document' not in st.session_state or st.session_state.document.document_type != document_type:
        st.session_state.document = docs.new_document(document_type, supply_mode, engine=engine)
        st.session_state.grid = line_grid(st.session_state.document)
    if st.session_state.document.supply_mode != supply_mode:
        st.session_state.document = docs.set_supply_mode(st.session_state.document, supply_mode, tax_catalog)

    st.divider()
    if profiles[document_type].include_shipping:
        shipping = st.number_input("Shipping Charges", min_value=0.0, value=0.0, step=1.0)
    else:
        shipping = 0.0
        st.caption("Shipping is not charged on this document type")
    adjustment = st.number_input("Adjustment", value=0.0, step=1.0)


# ============================================================================
# MAIN CONTENT
# ============================================================================
st.title("GST Document Pricing")
st.caption(f"{profiles[document_type].name} | {datetime.now().strftime('%Y-%m-%d')}")

st.markdown("### 📝 Line Items")
edited_df = st.data_editor(
    st.session_state.grid,
    use_container_width=True,
    num_rows="dynamic",
    column_config={
        "Quantity": st.column_config.NumberColumn("Quantity", min_value=0.0),
        "Rate": st.column_config.NumberColumn("Rate", min_value=0.0, format="%.2f"),
        "Discount": st.column_config.NumberColumn("Discount", min_value=0.0),
        "Discount Type": st.column_config.SelectboxColumn("Discount Type", options=["percentage", "flat"]),
        "Tax": st.column_config.SelectboxColumn("Tax", options=tax_labels),
    },
    key=f"line_editor_{document_type}",
)

# Rebuild the document from the grid
new_state = docs.new_document(document_type, supply_mode, engine=engine)
first = True
for _, row in edited_df.iterrows():
    if not first:
        new_state = docs.add_line(new_state)
    first = False
    item_id = new_state.items[-1].item_id
    new_state = docs.update_line(
        new_state,
        item_id,
        tax_catalog=tax_catalog,
        name=row['Item'] if pd.notna(row['Item']) else '',
        hsn_sac=row['HSN/SAC'] if pd.notna(row['HSN/SAC']) else '',
        quantity=row['Quantity'] if pd.notna(row['Quantity']) else 1,
        rate=row['Rate'],
        discount_value=row['Discount'],
        discount_type=row['Discount Type'],
        tax_label=row['Tax'] if pd.notna(row['Tax']) else None,
    )
new_state = docs.set_adjustments(new_state, shipping_charges=shipping, adjustment=adjustment)
st.session_state.document = new_state

totals = docs.totals(new_state, engine)

# Top Level Metrics
m1, m2, m3, m4 = st.columns(4)
m1.metric("Sub Total", format_inr(totals.sub_total))
if supply_mode == SupplyMode.INTER_STATE:
    m2.metric("IGST", format_inr(totals.igst))
else:
    m2.metric("CGST + SGST", f"{format_inr(totals.cgst)} + {format_inr(totals.sgst)}")
m3.metric("Adjustments", format_inr(totals.shipping_charges + totals.adjustment))
m4.metric("Total", format_inr(totals.grand_total))
st.caption(f"**Total In Words:** {amount_in_words(totals.grand_total)}")

tab1, tab2 = st.tabs(["📄 Preview", "📊 Tax Summary"])

with tab1:
    preview_df = lines_frame(new_state.items, engine)
    st.dataframe(preview_df, use_container_width=True, hide_index=True)

with tab2:
    summary_df = tax_summary(new_state.items, engine, supply_mode)
    if summary_df.empty:
        st.info("No taxable lines")
    else:
        st.dataframe(summary_df, use_container_width=True, hide_index=True)

# Actions
btn_col1, btn_col2 = st.columns(2)
with btn_col1:
    st.download_button(
        "📥 CSV",
        data=preview_df.to_csv(index=False),
        file_name=f"{document_type}_lines.csv",
        mime="text/csv",
        use_container_width=True
    )
with btn_col2:
    st.download_button(
        "📥 JSON Payload",
        data=json.dumps(docs.build_payload(new_state, engine), indent=2),
        file_name=f"{document_type}.json",
        mime="application/json",
        use_container_width=True
    )
