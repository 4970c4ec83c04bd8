"""
Streamlit web interface for the distribution toolkit.

Interactive UI with tabs for:
- Density and CDF plots
- Quantile table
- Self-consistency diagnostics
"""

import math

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from probdist.core.factory import FAMILIES, build_distribution, family_names
from probdist.diagnostics.consistency import evaluation_grid, run_all_checks

st.set_page_config(page_title="Distribution Explorer", layout="wide")

st.title("Distribution Explorer")
st.markdown("Numerically robust densities, CDFs, survival functions and quantiles")

# Sidebar parameters
st.sidebar.header("Distribution")
family = st.sidebar.selectbox("Family", family_names())
entry = FAMILIES[family]
params = {
    name: st.sidebar.text_input(name, value=str(entry.defaults[name]))
    for name in entry.parameters
}
variant = st.sidebar.selectbox("Variant", entry.variants)

try:
    dist = build_distribution(family, params, variant)
except ValueError as e:
    st.error(f"Error: {e}")
    st.stop()

# Main tabs
tab1, tab2, tab3 = st.tabs(["Density & CDF", "Quantiles", "Diagnostics"])

with tab1:
    st.header(repr(dist))

    xs = evaluation_grid(dist, 200)
    cdf_values = [dist.cdf(float(x)) for x in xs]
    bar_f_values = [dist.bar_f(float(x)) for x in xs]

    col1, col2 = st.columns(2)

    with col1:
        try:
            density_values = [dist.density(float(x)) for x in xs]
        except NotImplementedError as e:
            st.info(f"Density not available: {e}")
        else:
            fig_density = go.Figure()
            fig_density.add_trace(go.Scatter(x=xs, y=density_values, name="Density"))
            fig_density.update_layout(title="Density", xaxis_title="x", yaxis_title="f(x)")
            st.plotly_chart(fig_density, use_container_width=True)

    with col2:
        fig_cdf = go.Figure()
        fig_cdf.add_trace(go.Scatter(x=xs, y=cdf_values, name="F(x)"))
        fig_cdf.add_trace(go.Scatter(x=xs, y=bar_f_values, name="1 - F(x)", line=dict(color="orange")))
        fig_cdf.update_layout(title="CDF and survival function", xaxis_title="x", yaxis_title="Probability")
        st.plotly_chart(fig_cdf, use_container_width=True)

    log_tail = st.checkbox("Survival function on a log scale")
    if log_tail:
        fig_tail = go.Figure()
        fig_tail.add_trace(go.Scatter(x=xs, y=bar_f_values, name="1 - F(x)"))
        fig_tail.update_layout(title="Upper tail", xaxis_title="x", yaxis_title="1 - F(x)", yaxis_type="log")
        st.plotly_chart(fig_tail, use_container_width=True)

with tab2:
    st.header("Quantiles")

    probabilities = [0.001, 0.01, 0.05, 0.1, 0.25, 0.5, 0.75, 0.9, 0.95, 0.99, 0.999]
    quantiles = [dist.inverse_f(u) for u in probabilities]
    quantile_df = pd.DataFrame({
        "u": probabilities,
        "inverse_f(u)": quantiles,
        "cdf(inverse_f(u))": [dist.cdf(x) for x in quantiles],
    })
    st.table(quantile_df)

    try:
        st.metric(label="Mean", value=f"{dist.mean():.8g}")
        std = dist.standard_deviation()
        st.metric(label="Standard deviation", value=f"{std:.8g}" if math.isfinite(std) else "inf")
    except (NotImplementedError, ArithmeticError) as e:
        st.info(f"Moments: {e}")

with tab3:
    st.header("Self-consistency diagnostics")

    if st.button("Run checks"):
        fast = None
        if variant == "exact" and "fast" in entry.variants:
            fast = build_distribution(family, params, "fast")
        results = run_all_checks(dist, fast)
        summary = pd.DataFrame({
            "Check": list(results),
            "Passed": [r.is_valid for r in results.values()],
            "Violations": [len(r.violations) for r in results.values()],
        })
        st.table(summary)
        for name, result in results.items():
            for violation in result.violations:
                st.warning(f"{name}: {violation}")

    st.caption(f"Grid of {len(xs)} points between the 0.001 and 0.999 quantiles or the support ends")
