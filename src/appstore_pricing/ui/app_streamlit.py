"""
Streamlit UI for browsing the App Store pricing matrix.

Features:
- Tier / storefront lookup with retail and wholesale metrics
- Tier matrix table with CSV export
- Country and currency overview
- Build report for the embedded matrix
"""
import json

import streamlit as st

from appstore_pricing.catalog import get_catalog
from appstore_pricing.config.settings import get_settings


st.set_page_config(
    page_title="App Store Pricing Matrix",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_catalog_cached():
    """Get cached catalog instance."""
    return get_catalog()


try:
    catalog = get_catalog_cached()
    settings = get_settings()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()

if not catalog.tiers():
    st.error("The pricing matrix is empty or malformed.")
    st.stop()


# ============================================================================
# SIDEBAR: Lookup Context
# ============================================================================
with st.sidebar:
    st.header("🌍 Lookup")

    with st.container(border=True):
        tier_names = {t.tier_stem: t.tier_name for t in catalog.tiers()}
        tier_stem = st.selectbox(
            "Tier",
            catalog.stems(),
            index=1 if len(catalog.stems()) > 1 else 0,
            format_func=lambda stem: f"{tier_names[stem]} ({stem})",
        )
        countries = catalog.countries()
        country = st.selectbox(
            "Storefront",
            countries,
            index=countries.index("US") if "US" in countries else 0,
        )

    st.divider()
    st.caption(f"{len(catalog.tiers())} tiers | {len(countries)} storefronts | "
               f"{len(catalog.currencies())} currencies")


# ============================================================================
# MAIN CONTENT: TABBED INTERFACE
# ============================================================================
st.title("App Store Pricing Matrix")

tab1, tab2, tab3, tab4 = st.tabs(["🔎 Lookup", "📚 Tier Matrix", "💱 Storefronts", "📊 System"])


# ============================================================================
# TAB 1: LOOKUP
# ============================================================================
with tab1:
    record = catalog.find_by(country=country, tier=tier_stem)

    st.subheader(f"{record.tier_name} in {country}")
    if record.matched:
        c1, c2, c3 = st.columns(3)
        c1.metric("Customer Price", record.formatted_retail_price)
        c2.metric("Proceeds", record.formatted_wholesale_price)
        c3.metric("Currency", record.currency_code)
    else:
        st.warning(f"{record.tier_name} has no price for {country}.")

    with st.expander("Raw record"):
        st.json(record.to_dict())


# ============================================================================
# TAB 2: TIER MATRIX
# ============================================================================
with tab2:
    st.subheader("📚 Tier Matrix")

    col1, col2 = st.columns(2)
    with col1:
        country_filter = st.selectbox("Storefront", ["ALL", *catalog.countries()], key="matrix_country")
    with col2:
        currency_filter = st.selectbox("Currency", ["ALL", *catalog.currencies()], key="matrix_currency")

    matrix = catalog.to_frame(
        country=None if country_filter == "ALL" else country_filter,
        currency=None if currency_filter == "ALL" else currency_filter,
    )
    if country_filter == "ALL" and currency_filter == "ALL":
        matrix = matrix[matrix['tier_stem'] == tier_stem]

    st.dataframe(matrix, use_container_width=True, height=600, hide_index=True)
    st.caption(f"Total entries: {len(catalog):,} | Visible: {len(matrix):,}")

    st.download_button(
        "📥 CSV",
        data=matrix.to_csv(index=False),
        file_name="pricing_matrix.csv",
        mime="text/csv",
    )


# ============================================================================
# TAB 3: STOREFRONTS
# ============================================================================
with tab3:
    st.subheader("💱 Storefronts")
    storefronts = catalog.storefronts().rename(columns={
        'country_code': 'Country',
        'currency_code': 'Currency',
        'currency_symbol': 'Symbol',
    })
    st.dataframe(storefronts, use_container_width=True, hide_index=True)


# ============================================================================
# TAB 4: SYSTEM INFO
# ============================================================================
with tab4:
    st.header("System Status")
    st.caption(f"Dataset: {settings.pricing_matrix}")

    build_report_path = settings.build_report
    if build_report_path.exists():
        with open(build_report_path, 'r') as f:
            report = json.load(f)

        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Tiers", f"{report['metrics'].get('tier_count', 0):,}")
        c2.metric("Storefronts", f"{report['metrics'].get('storefront_count', 0):,}")
        c3.metric("Entries", f"{report['metrics'].get('entry_count', 0):,}")
        c4.metric("Last Build", report.get('timestamp', '')[:10])

        for warning in report.get('warnings', []):
            st.warning(warning)
    else:
        st.info("No build report found. Run scripts/build_all.py to regenerate the matrix.")
