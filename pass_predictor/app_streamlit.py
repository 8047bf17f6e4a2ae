import asyncio
import math
import time
from typing import Any

import pandas as pd
import streamlit as st

from pass_predictor.config import configure_logging, load_config
from pass_predictor.controller import InputMode, build_controller
from pass_predictor.health import HealthState
from pass_predictor.record import MORE_FIELDS, NUMERIC_RANGES, PRIMARY_FIELDS, is_categorical, options_for
from pass_predictor.serialization import is_pass, probability_percent

# ---------------------------
# Configuration
# ---------------------------
config = load_config()
configure_logging(config.log_level)

st.set_page_config(
    page_title="Student Pass/Fail Predictor",
    page_icon="🎓",
    layout="wide"
)

if "controller" not in st.session_state:
    st.session_state["controller"] = build_controller(config)
    st.session_state["form_rev"] = 0
    st.session_state["upload_rev"] = 0
    st.session_state["last_probe"] = 0.0

ctrl = st.session_state["controller"]

STATUS_COLORS = {
    HealthState.UNKNOWN: "⚪",
    HealthState.ONLINE: "🟢",
    HealthState.OFFLINE: "🔴",
}


def bump_form():
    # new widget keys so every widget re-reads its value from the controller
    st.session_state["form_rev"] += 1


def coerce_number(text: str) -> Any:
    text = text.strip()
    if text == "":
        return ""
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return text
    # nan and inf have no JSON form, keep them as typed text
    return number if math.isfinite(number) else text


def on_field_change(field: str, key: str, numeric_text: bool = False):
    value = st.session_state[key]
    ctrl.set_field(field, coerce_number(value) if numeric_text else value)
    bump_form()


def field_widget(field: str):
    key = f"{field}-{st.session_state['form_rev']}"
    value = ctrl.form.get(field)

    if is_categorical(field):
        options = options_for(field)
        if value not in options:
            options = [value, *options]
        st.selectbox(field, options, index=options.index(value), key=key,
                     on_change=on_field_change, args=(field, key))
        return

    lo, hi = NUMERIC_RANGES.get(field, (None, None))
    label = f"{field} ({lo}–{hi})" if lo is not None else field
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        kind = type(value)
        in_range = lo is not None and lo <= value <= hi
        st.number_input(
            label,
            value=value,
            min_value=kind(lo) if in_range else None,
            max_value=kind(hi) if in_range else None,
            key=key,
            on_change=on_field_change,
            args=(field, key),
        )
    else:
        st.text_input(label, value="" if value is None else str(value), key=key,
                      on_change=on_field_change, args=(field, key, True))


def field_grid(fields, columns=3):
    cols = st.columns(columns)
    for i, field in enumerate(fields):
        with cols[i % columns]:
            field_widget(field)


def history_frame(entries) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "time": e.at,
                "result": "PASS" if is_pass(e.prediction) else "FAIL",
                "pass %": probability_percent(e.pass_probability),
                "prediction": e.prediction,
                "pass_probability": e.pass_probability,
            }
            for e in entries
        ]
    )


# ---------------------------
# Header + backend health
# ---------------------------
st.title("🎓 Student Pass/Fail Predictor")
st.caption(f"Backend: `{ctrl.client.api_base}` · [API Docs]({ctrl.client.docs_url})")


@st.fragment(run_every=config.health_interval)
def health_badge():
    before = ctrl.health
    now = time.monotonic()
    if before is HealthState.UNKNOWN or now - st.session_state["last_probe"] >= config.health_interval:
        st.session_state["last_probe"] = now
        asyncio.run(ctrl.monitor.probe())

    st.markdown(f"{STATUS_COLORS[ctrl.health]} {ctrl.monitor.status_label()}")
    if ctrl.health is not before:
        # predict button depends on health, redraw the whole page
        st.rerun()


health_badge()

# ---------------------------
# Toolbar
# ---------------------------
mode = st.radio(
    "Input mode",
    [InputMode.FORM.value, InputMode.JSON.value],
    index=0 if ctrl.mode is InputMode.FORM else 1,
    format_func=lambda m: "Form Mode (Friendly)" if m == InputMode.FORM.value else "JSON Mode (Advanced)",
    horizontal=True,
)
if mode != ctrl.mode.value:
    ctrl.set_mode(mode)
    bump_form()

bar = st.columns(5)
with bar[0]:
    upload = st.file_uploader("Upload JSON", key=f"upload-{st.session_state['upload_rev']}",
                              disabled=ctrl.busy)
    if upload is not None:
        ctrl.import_file(upload.name, upload.getvalue())
        st.session_state["upload_rev"] += 1
        bump_form()
        st.rerun()
with bar[1]:
    st.download_button("Download Input", ctrl.export_input(), "student_input.json",
                       "application/json", disabled=ctrl.busy)
with bar[2]:
    st.download_button("Download Result", ctrl.export_result() or "", "prediction_result.json",
                       "application/json", disabled=ctrl.result is None)
with bar[3]:
    st.download_button("Download History (CSV)", ctrl.export_history_csv(), "prediction_history.csv",
                       "text/csv", disabled=len(ctrl.history) == 0)
with bar[4]:
    if st.button("Reset", disabled=ctrl.busy):
        ctrl.reset()
        bump_form()
        st.rerun()

# ---------------------------
# Input / Output
# ---------------------------
left, right = st.columns(2)

with left:
    st.subheader("Input")
    if ctrl.mode is InputMode.FORM:
        field_grid(PRIMARY_FIELDS)
        with st.expander("More fields (optional)"):
            field_grid(MORE_FIELDS)
    else:
        st.caption("Tip: Upload a JSON file to fill this automatically.")
        json_key = f"json-{st.session_state['form_rev']}"
        st.text_area("Record JSON", value=ctrl.json_text, height=360, key=json_key,
                     on_change=lambda: ctrl.set_json_text(st.session_state[json_key]))
        if st.button("Apply JSON → Form"):
            if ctrl.apply_json():
                bump_form()
            st.rerun()

    actions = st.columns(2)
    with actions[0]:
        if st.button("Predicting…" if ctrl.busy else "Predict", type="primary", disabled=not ctrl.can_submit):
            with st.spinner("Predicting..."):
                asyncio.run(ctrl.submit())
            st.rerun()
    with actions[1]:
        if st.button("Clear result", disabled=ctrl.busy):
            ctrl.clear_result()
            st.rerun()

    if ctrl.error:
        st.error(f"Error: {ctrl.error}")

with right:
    st.subheader("Output")
    if ctrl.result is None:
        st.info("No prediction yet. Fill the form and click **Predict**.")
    else:
        verdict = "PASS" if ctrl.display_pass else "FAIL"
        (st.success if ctrl.display_pass else st.error)(f"**{verdict}** · Pass probability: {ctrl.display_percent}%")
        st.caption(ctrl.result.at)
        st.progress(ctrl.display_percent)
        st.json(ctrl.result.result_raw)

# ---------------------------
# History
# ---------------------------
st.subheader("History")
history = ctrl.history
if not history:
    st.write("No history yet.")
else:
    grid = st.columns(4)
    for i, h in enumerate(history):
        label = f"{'PASS' if is_pass(h.prediction) else 'FAIL'} · {probability_percent(h.pass_probability)}% · {h.at}"
        with grid[i % 4]:
            if st.button(label, key=f"hist-{i}-{h.at}", help="Click to load this result"):
                ctrl.select_history(i)
                st.rerun()
    with st.expander("History table", expanded=False):
        st.dataframe(history_frame(history), use_container_width=True)

hist_actions = st.columns(2)
with hist_actions[0]:
    if st.button("Clear history", disabled=not history):
        ctrl.clear_history()
        st.rerun()
with hist_actions[1]:
    st.download_button("Download History (JSON)", ctrl.export_history_json(), "prediction_history.json",
                       "application/json", disabled=not history)
