"""Streamlit UI for the proximal-tubule transport simulation."""

from __future__ import annotations

import csv
from dataclasses import asdict, replace
import io
import json
import logging

import altair as alt
import numpy as np
import pandas as pd
import streamlit as st

from tubule import (
    SPECIES,
    SimulationInputs,
    SimulationOutputs,
    simulate,
    validate_inputs,
)
from tubule.results import csv_columns

COMPARTMENTS = ("lumen", "cell", "blood")


def _default_inputs() -> SimulationInputs:
    return SimulationInputs(
        t_end_s=10.0,
        dt_s=1.0 / 60.0,
        seed=0,
        n_nka_sites=4,
        n_sglt2_sites=2,
        n_nhe3_sites=2,
        record_every=6,
    )


def _build_csv_text(outputs: SimulationOutputs) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(csv_columns(outputs))
    keys = sorted(outputs.concentrations_mmol_l)
    for idx in range(len(outputs.time_s)):
        row = [outputs.time_s[idx], outputs.membrane_potential_mv[idx], outputs.ghk_potential_mv[idx]]
        row.extend(outputs.concentrations_mmol_l[key][idx] for key in keys)
        writer.writerow([f"{value:.12g}" for value in row])
    return buffer.getvalue()


def _potential_frame(outputs: SimulationOutputs) -> pd.DataFrame:
    """Long-form frame of dynamic Vm and GHK reference for plotting."""

    wide = pd.DataFrame(
        {
            "time_s": [float(v) for v in outputs.time_s],
            "Vm (dynamic)": [float(v) for v in outputs.membrane_potential_mv],
            "GHK (equilibrium)": [float(v) for v in outputs.ghk_potential_mv],
        }
    )
    return wide.melt(id_vars=["time_s"], var_name="series", value_name="potential_mv")


def _concentration_frame(
    outputs: SimulationOutputs,
    species: str,
    compartments: tuple[str, ...] = COMPARTMENTS,
) -> pd.DataFrame:
    """Long-form frame of one species' concentration in each compartment."""

    rows = []
    for compartment in compartments:
        values = outputs.concentration(compartment, species)
        for t, value in zip(outputs.time_s, values):
            rows.append(
                {
                    "time_s": float(t),
                    "compartment": compartment,
                    "concentration_mmol_l": float(value),
                }
            )
    return pd.DataFrame(rows)


def _build_excel_bytes(outputs: SimulationOutputs) -> bytes:
    """Build XLSX export bytes with one sheet for potentials and one for concentrations."""

    potentials = pd.DataFrame(
        {
            "time_s": outputs.time_s,
            "membrane_potential_mv": outputs.membrane_potential_mv,
            "ghk_potential_mv": outputs.ghk_potential_mv,
        }
    )
    concentrations = pd.DataFrame({"time_s": outputs.time_s, **outputs.concentrations_mmol_l})
    output = io.BytesIO()
    with pd.ExcelWriter(output, engine="openpyxl") as writer:
        potentials.to_excel(writer, sheet_name="potentials", index=False)
        concentrations.to_excel(writer, sheet_name="concentrations", index=False)
    return output.getvalue()


def _pump_sweep_frame(inputs: SimulationInputs, site_counts: list[int]) -> pd.DataFrame:
    """Final Vm and cell Na+ as a function of the number of Na/K-ATPase sites."""

    rows = []
    for n_sites in site_counts:
        outputs = simulate(replace(inputs, n_nka_sites=int(n_sites)))
        rows.append(
            {
                "n_nka_sites": int(n_sites),
                "final_vm_mv": float(outputs.membrane_potential_mv[-1]),
                "final_cell_na_mmol_l": float(outputs.concentration("cell", "Na")[-1]),
            }
        )
    return pd.DataFrame(rows)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    st.set_page_config(page_title="Tubule Transport", layout="wide")
    st.title("Proximal Tubule Epithelium - Emergent Ion Transport")
    st.caption(
        "Stochastic Na/K-ATPase, SGLT2 and NHE3 state machines moving ions between lumen, cell and blood."
    )

    defaults = _default_inputs()

    with st.sidebar:
        st.header("Run")
        t_end_s = st.number_input("t_end_s [s]", min_value=0.01, value=defaults.t_end_s, step=1.0)
        dt_ms = st.number_input(
            "dt [ms]",
            min_value=0.1,
            value=defaults.dt_s * 1000.0,
            step=1.0,
            help="Tick length. One tick advances chemistry, transporters and voltage once.",
        )
        seed = int(st.number_input("seed", min_value=0, value=int(defaults.seed or 0), step=1))

        st.header("Transporters")
        n_nka_sites = int(st.number_input("Na/K-ATPase sites", min_value=0, value=defaults.n_nka_sites, step=1))
        n_sglt2_sites = int(st.number_input("SGLT2 sites", min_value=0, value=defaults.n_sglt2_sites, step=1))
        n_nhe3_sites = int(st.number_input("NHE3 sites", min_value=0, value=defaults.n_nhe3_sites, step=1))
        nka_transport_count = st.number_input(
            "molecules per Na/K-ATPase site",
            min_value=1.0,
            value=defaults.nka_transport_count,
            format="%.3g",
        )

        st.header("Initial concentrations [mM]")
        lumen_na = st.number_input("lumen Na+", min_value=0.0, value=defaults.lumen_na_mmol_l, step=1.0)
        lumen_glucose = st.number_input(
            "lumen glucose", min_value=0.0, value=defaults.lumen_glucose_mmol_l, step=0.5
        )
        cell_na = st.number_input("cell Na+", min_value=0.0, value=defaults.cell_na_mmol_l, step=1.0)
        cell_k = st.number_input("cell K+", min_value=0.0, value=defaults.cell_k_mmol_l, step=1.0)
        cell_atp = st.number_input(
            "cell ATP",
            min_value=0.0,
            value=defaults.cell_atp_mmol_l,
            step=0.5,
            help="Set to 0 to watch the gradient drift without an active pump.",
        )
        blood_k = st.number_input("blood K+", min_value=0.0, value=defaults.blood_k_mmol_l, step=0.5)
        resting_potential_mv = st.number_input(
            "initial Vm [mV]", min_value=-200.0, max_value=100.0, value=defaults.resting_potential_mv
        )

    inputs = replace(
        defaults,
        t_end_s=float(t_end_s),
        dt_s=float(dt_ms) / 1000.0,
        seed=seed,
        n_nka_sites=n_nka_sites,
        n_sglt2_sites=n_sglt2_sites,
        n_nhe3_sites=n_nhe3_sites,
        nka_transport_count=float(nka_transport_count),
        lumen_na_mmol_l=float(lumen_na),
        lumen_glucose_mmol_l=float(lumen_glucose),
        cell_na_mmol_l=float(cell_na),
        cell_k_mmol_l=float(cell_k),
        cell_atp_mmol_l=float(cell_atp),
        blood_k_mmol_l=float(blood_k),
        resting_potential_mv=float(resting_potential_mv),
    )

    try:
        validate_inputs(inputs)
    except ValueError as exc:
        st.error(str(exc))
        return

    outputs = simulate(inputs)
    meta = outputs.metadata

    st.markdown("### Membrane potential")
    st.caption("Vm integrates transporter current on the membrane capacitance; GHK is the equilibrium reference.")
    potential_chart = (
        alt.Chart(_potential_frame(outputs))
        .mark_line()
        .encode(
            x=alt.X("time_s:Q", title="Time [s]"),
            y=alt.Y("potential_mv:Q", title="Potential [mV]"),
            color=alt.Color("series:N", title="Series"),
        )
        .properties(height=280)
    )
    st.altair_chart(potential_chart, use_container_width=True)

    st.markdown("### Concentrations")
    species = st.selectbox("Species", SPECIES, index=SPECIES.index("Na"))
    shown = st.multiselect("Compartments", COMPARTMENTS, default=list(COMPARTMENTS))
    if shown:
        conc_chart = (
            alt.Chart(_concentration_frame(outputs, species, tuple(shown)))
            .mark_line()
            .encode(
                x=alt.X("time_s:Q", title="Time [s]"),
                y=alt.Y("concentration_mmol_l:Q", title=f"[{species}] [mM]", scale=alt.Scale(zero=False)),
                color=alt.Color("compartment:N", title="Compartment"),
            )
            .properties(height=280)
        )
        st.altair_chart(conc_chart, use_container_width=True)

    st.markdown("### Export")
    metadata_json = json.dumps(
        {"inputs": asdict(inputs), "metadata": meta}, indent=2, sort_keys=True
    )
    c1, c2, c3 = st.columns(3)
    c1.download_button(
        "Download Timeseries CSV",
        data=_build_csv_text(outputs),
        file_name="tubule_timeseries.csv",
        mime="text/csv",
    )
    c2.download_button(
        "Download Timeseries Excel",
        data=_build_excel_bytes(outputs),
        file_name="tubule_timeseries.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    c3.download_button(
        "Download Metadata JSON",
        data=metadata_json,
        file_name="tubule_metadata.json",
        mime="application/json",
    )

    st.markdown("### Pump Sweep")
    st.caption("Final Vm and cell Na+ as a function of Na/K-ATPase site count (same seed).")
    pcol1, pcol2 = st.columns(2)
    sweep_max = int(pcol1.number_input("max sites", min_value=1, value=8, step=1))
    sweep_points = int(pcol2.number_input("points", min_value=2, value=5, step=1))
    site_counts = sorted({int(v) for v in np.linspace(0, sweep_max, sweep_points)})
    sweep_df = _pump_sweep_frame(inputs, site_counts)
    sweep_chart = (
        alt.Chart(sweep_df)
        .mark_line(point=True)
        .encode(
            x=alt.X("n_nka_sites:Q", title="Na/K-ATPase sites"),
            y=alt.Y("final_vm_mv:Q", title="Final Vm [mV]"),
        )
        .properties(height=260)
    )
    st.altair_chart(sweep_chart, use_container_width=True)

    st.markdown("### Summary")
    col1, col2 = st.columns(2)
    col1.metric("final Vm [mV]", f"{float(meta['final_membrane_potential_mv']):.2f}")
    col2.metric("final GHK [mV]", f"{float(meta['final_ghk_potential_mv']):.2f}")
    col1.metric("pump cycles", f"{int(meta['nka_completed_cycles'])}")
    col2.metric("pump aborts", f"{int(meta['nka_aborted_cycles'])}")
    col1.metric("ATP consumed [molecules]", f"{float(meta['atp_consumed']):.3e}")
    col2.metric("glucose reabsorbed [molecules]", f"{float(meta['glucose_reabsorbed']):.3e}")
    col1.metric("SGLT2 cycles", f"{int(meta['sglt2_completed_cycles'])}")
    col2.metric("SGLT2 slips", f"{int(meta['sglt2_backward_transitions'])}")
    col1.metric("NHE3 cycles", f"{int(meta['nhe3_completed_cycles'])}")
    col2.metric("H+ secreted [molecules]", f"{float(meta['protons_secreted']):.3e}")


if __name__ == "__main__":
    main()
