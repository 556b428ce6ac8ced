"""
Scenario Import - Streamlit UI
==============================

Review interface for project datasets and imports.

Pages:
1. Dataset Overview
2. Import Files
3. Provenance

Run with:  streamlit run scenario_import/ui/app.py
"""

import tempfile
from pathlib import Path
from typing import List, Optional

import plotly.express as px
import streamlit as st

from scenario_import.context import OperationContext
from scenario_import.data.statistics import sorted_scenarios, statistics_frame
from scenario_import.errors import ConfirmationRequiredError, MappingError
from scenario_import.importing.mapping import MappingConfig, parse_mapping
from scenario_import.logging_config import configure_logging
from scenario_import.modes import DatasetRole, ProjectMode
from scenario_import.project.persistence import load_project, save_project
from scenario_import.project.project import Project
from scenario_import.ui.tables import ACTION_LABELS, apply_plan_frame, plan_to_frame, provenance_frame


st.set_page_config(
    page_title="Scenario Import",
    page_icon="⚡",
    layout="wide",
    initial_sidebar_state="expanded"
)


def _upload_dir() -> Path:
    if "upload_dir" not in st.session_state:
        st.session_state.upload_dir = tempfile.mkdtemp(prefix="scenario_import_")
    return Path(st.session_state.upload_dir)


def _save_uploads(uploaded) -> List[str]:
    paths = []
    for f in uploaded or []:
        path = _upload_dir() / f.name
        path.write_bytes(f.getvalue())
        paths.append(str(path))
    return paths


def render_overview(project: Project, role: DatasetRole):
    """Dataset statistics page."""
    st.header("📊 Dataset Overview")
    dataset = project.slot(role).dataset

    col1, col2, col3 = st.columns(3)
    col1.metric("Entries", dataset.total_entries())
    col2.metric("Data Types", len(dataset.types_with_data()))
    col3.metric("Scenarios", len(sorted_scenarios(dataset)))

    df = statistics_frame(dataset)
    if df.empty:
        st.info(f"The {role.value} dataset is empty. Import files to get started.")
        return

    fig = px.bar(
        df, x="data_type", y="count", color="scenario",
        title="Entries by Data Type and Scenario",
        labels={"data_type": "Data Type", "count": "Entries", "scenario": "Scenario"},
    )
    st.plotly_chart(fig, use_container_width=True)

    stats = project.statistics(role)
    st.dataframe(
        [{"Data Type": s.display_name, "Entries": s.total, "Per Scenario": s.statistics_display} for s in stats],
        hide_index=True,
        use_container_width=True,
    )


def render_import(project: Project, role: DatasetRole, mapping: Optional[MappingConfig], project_path: str):
    """Scan, plan and commit page."""
    st.header("📥 Import Files")
    if mapping is None:
        st.warning("Upload a field mapping in the sidebar first.")
        return

    uploaded = st.file_uploader(
        "Exported study files", type=["csv", "xls", "xlsx"], accept_multiple_files=True
    )
    files = _save_uploads(uploaded)
    if not files:
        return

    context = OperationContext()
    if st.button("🔍 Scan Files"):
        st.session_state.scan = project.scan(files, mapping, context=context)
        st.session_state.plan = project.build_plan(role, st.session_state.scan)
        st.session_state.conflict = project.pre_scan(role, files, mapping, context=context)

    plan = st.session_state.get("plan")
    if plan is None:
        return

    for result in st.session_state.scan:
        if result.has_error:
            st.error(result.summary)
        else:
            st.caption(result.summary)

    conflict = st.session_state.conflict
    if conflict.will_overwrite:
        st.warning("Existing data affected: " + ", ".join(conflict.affected_types))

    if project.mode == ProjectMode.COMPOSITE:
        st.subheader("Import Plan")
        edited = st.data_editor(
            plan_to_frame(plan),
            hide_index=True,
            use_container_width=True,
            disabled=["file", "scenario", "entries", "error"],
            column_config={
                "action": st.column_config.SelectboxColumn(options=list(ACTION_LABELS.values())),
                "overwrite_target": st.column_config.SelectboxColumn(
                    options=[""] + sorted(plan.existing_scenarios, key=str.lower)
                ),
            },
        )
        apply_plan_frame(plan, edited)
        for message in plan.errors():
            st.error(message)

    if st.button("🚀 Import", type="primary", disabled=not plan.can_commit):
        result = project.commit(role, plan, mapping, context=context)
        save_project(project, project_path)
        st.session_state.pop("plan", None)
        if result.succeeded:
            st.success(result.summary)
        else:
            st.warning(result.summary)
            for e in result.per_file_errors:
                st.error(e)


def render_provenance(project: Project, role: DatasetRole):
    """Provenance page."""
    st.header("🔍 Provenance")
    df = provenance_frame(project.provenance_tree(role))
    if df.empty:
        st.info("No import sources recorded.")
        return
    st.dataframe(df, hide_index=True, use_container_width=True)

    records = project.slot(role).records
    if records:
        st.subheader("Import History")
        st.dataframe(
            [
                {
                    "File": r.file_name,
                    "Imported (UTC)": r.imported_at.strftime("%Y-%m-%d %H:%M"),
                    "Entries": r.entry_count,
                    "Scenarios": r.scenario_mappings_summary(),
                }
                for r in records
            ],
            hide_index=True,
            use_container_width=True,
        )


def main():
    """Main application."""
    configure_logging()
    st.title("⚡ Scenario Import")
    st.caption("Scenario-aware import of power-study exports")

    with st.sidebar:
        st.header("Project")
        project_path = st.text_input("Project file", value="project.json")
        if not Path(project_path).exists():
            if st.button("Create project"):
                save_project(Project(Path(project_path).stem), project_path)
            st.info("Project file not found.")
            return
        project = load_project(project_path)

        role = DatasetRole(st.radio("Dataset", [r.value for r in DatasetRole], horizontal=True))

        mode = st.selectbox(
            "Mode", [m.value for m in ProjectMode], index=[m for m in ProjectMode].index(project.mode)
        )
        if mode != project.mode.value:
            confirm = st.checkbox("I understand all imported data will be deleted")
            if st.button("Change mode"):
                try:
                    project.change_mode(ProjectMode(mode), confirm=confirm)
                    save_project(project, project_path)
                    st.success(f"Mode changed to {mode}")
                except ConfirmationRequiredError as e:
                    st.error(str(e))

        st.divider()
        mapping_file = st.file_uploader("Field mapping (.ezmap / .json)", type=["ezmap", "json"])
        mapping = None
        if mapping_file is not None:
            try:
                mapping = parse_mapping(mapping_file.getvalue().decode("utf-8"))
            except MappingError as e:
                st.error(str(e))

        st.divider()
        st.header("Navigation")
        page = st.radio("Select Page", ["📊 Dataset Overview", "📥 Import Files", "🔍 Provenance"])

    if page == "📊 Dataset Overview":
        render_overview(project, role)
    elif page == "📥 Import Files":
        render_import(project, role, mapping, project_path)
    else:
        render_provenance(project, role)


if __name__ == "__main__":
    main()
