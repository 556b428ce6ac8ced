from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

from pydantic import ValidationError

from .context import OperationContext
from .data.statistics import sorted_scenarios
from .errors import (
    ConfirmationRequiredError,
    MappingError,
    PlanValidationError,
    ScenarioConflictError,
)
from .importing.mapping import MappingConfig, load_mapping
from .logging_config import configure_logging
from .modes import DatasetRole, ProjectMode
from .planning.plan import ImportPlan, plan_from_rows
from .project.persistence import load_project, save_project
from .project.project import Project
from .provenance.tracker import render_tree


def _add_project(p: argparse.ArgumentParser) -> None:
    p.add_argument("project", help="Path to the project JSON file.")


def _add_role(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--role",
        choices=[r.value for r in DatasetRole],
        default=DatasetRole.NEW.value,
        help="Dataset to operate on (default: new).",
    )


def _add_import_inputs(p: argparse.ArgumentParser, files_required: bool = True) -> None:
    p.add_argument("--mapping", "-m", required=True, help="Field-mapping JSON (.ezmap).")
    p.add_argument("files", nargs="+" if files_required else "*", help="CSV/Excel files to import.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Scenario-aware import of power-study exports into a project."
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init", help="Create an empty project file.")
    _add_project(p)
    p.add_argument("--name", default="Untitled Project", help="Project name.")
    p.add_argument(
        "--mode",
        choices=[m.value for m in ProjectMode],
        default=ProjectMode.STANDARD.value,
        help="Import merge policy.",
    )

    p = sub.add_parser("validate-mapping", help="Check a field-mapping file.")
    p.add_argument("mapping", help="Field-mapping JSON (.ezmap).")

    p = sub.add_parser("scan", help="Report what files contain and which existing data they touch.")
    _add_project(p)
    _add_role(p)
    _add_import_inputs(p)

    p = sub.add_parser("plan", help="Write the default import plan for files.")
    _add_project(p)
    _add_role(p)
    _add_import_inputs(p)
    p.add_argument("--output", "-o", default="import_plan.json", help="Where to write the plan JSON.")

    p = sub.add_parser("import", help="Import files into a project dataset.")
    _add_project(p)
    _add_role(p)
    _add_import_inputs(p, files_required=False)
    p.add_argument("--plan", help="Edited plan JSON (Composite mode). Defaults to the default plan.")
    p.add_argument("--yes", "-y", action="store_true", help="Proceed even if existing data is replaced.")

    p = sub.add_parser("stats", help="Show per-type, per-scenario counts.")
    _add_project(p)
    _add_role(p)

    p = sub.add_parser("provenance", help="Show which file supplied which data.")
    _add_project(p)
    _add_role(p)
    p.add_argument("--json", action="store_true", help="Print the tree as JSON.")

    p = sub.add_parser("mode", help="Change project mode (deletes all imported data).")
    _add_project(p)
    p.add_argument("mode", choices=[m.value for m in ProjectMode])
    p.add_argument("--yes", "-y", action="store_true", help="Confirm the data loss.")

    p = sub.add_parser("clear", help="Remove all entries from a dataset.")
    _add_project(p)
    _add_role(p)
    p.add_argument("--yes", "-y", action="store_true", help="Confirm the data loss.")

    p = sub.add_parser("rename-scenario", help="Rename a scenario in a dataset.")
    _add_project(p)
    _add_role(p)
    p.add_argument("old")
    p.add_argument("new")

    return parser


def load_plan_rows(path: str) -> List[Dict[str, Any]]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Plan JSON not found: {path}")
    data = json.loads(p.read_text())
    rows = data.get("rows") if isinstance(data, dict) else data
    if not isinstance(rows, list):
        raise PlanValidationError(f"Plan JSON must be a list of rows or an object with 'rows': {path}")
    return rows


def _print_plan(plan: ImportPlan) -> None:
    for row in plan:
        target = row.target_scenario or ""
        arrow = f" -> {target}" if target else ""
        print(f"  {row.label}: {row.action.value}{arrow}")
        if row.error:
            print(f"    ! {row.error}", file=sys.stderr)


def _cmd_init(args: argparse.Namespace) -> int:
    project = Project(args.name, ProjectMode(args.mode))
    save_project(project, args.project)
    print(f"Created {args.mode} project '{args.name}' at {args.project}")
    return 0


def _cmd_validate_mapping(args: argparse.Namespace) -> int:
    mapping = load_mapping(args.mapping)
    result = mapping.validate_mapping()
    print(f"{len(mapping.import_map)} mapping entries for {', '.join(mapping.target_types()) or 'no types'}")
    for w in result.warnings:
        print(f"- warning: {w}", file=sys.stderr)
    for e in result.errors:
        print(f"- error: {e}", file=sys.stderr)
    return 1 if result.has_errors else 0


def _load_inputs(args: argparse.Namespace) -> tuple[Project, MappingConfig]:
    project = load_project(args.project)
    mapping = load_mapping(args.mapping)
    result = mapping.validate_mapping()
    if result.has_errors:
        raise MappingError("; ".join(result.errors))
    return project, mapping


def _cmd_scan(args: argparse.Namespace) -> int:
    project, mapping = _load_inputs(args)
    role = DatasetRole(args.role)
    context = OperationContext()
    for result in project.scan(args.files, mapping, context=context):
        print(result.summary)
        for label in result.scenarios:
            print(f"  {label}: {result.scenario_counts.get(label, 0)} entries")
    conflict = project.pre_scan(role, args.files, mapping, context=context)
    if conflict.will_overwrite:
        print("\nExisting data affected:")
        for t in conflict.affected_types:
            print(f"- {t}")
    else:
        print("\nNo existing data affected.")
    return 0


def _cmd_plan(args: argparse.Namespace) -> int:
    project, mapping = _load_inputs(args)
    role = DatasetRole(args.role)
    plan = project.build_plan(role, project.scan(args.files, mapping))
    Path(args.output).write_text(json.dumps(plan.to_dict(), indent=2))
    print(f"Plan for {len(plan.files())} files written to {args.output}")
    _print_plan(plan)
    return 0 if plan.can_commit else 1


def _cmd_import(args: argparse.Namespace) -> int:
    project, mapping = _load_inputs(args)
    role = DatasetRole(args.role)
    context = OperationContext()

    if args.plan:
        existing = sorted_scenarios(project.slot(role).dataset)
        plan = plan_from_rows(load_plan_rows(args.plan), existing, project.mode)
    elif args.files:
        plan = project.build_plan(role, project.scan(args.files, mapping, context=context))
    else:
        print("Input error: give files to import or --plan", file=sys.stderr)
        return 2

    if not plan.can_commit:
        print("Import plan is not valid:", file=sys.stderr)
        _print_plan(plan)
        return 1

    if project.mode == ProjectMode.STANDARD and not args.yes:
        conflict = project.pre_scan(role, plan.files(), mapping, context=context)
        if conflict.will_overwrite:
            print("Import would replace existing data:", file=sys.stderr)
            for t in conflict.affected_types:
                print(f"- {t}", file=sys.stderr)
            print("Re-run with --yes to proceed.", file=sys.stderr)
            return 1

    result = project.commit(role, plan, mapping, mapping_path=args.mapping, context=context)
    save_project(project, args.project)

    print(result.summary)
    if result.per_file_errors:
        print("\nFailed files:", file=sys.stderr)
        for e in result.per_file_errors:
            print(f"- {e}", file=sys.stderr)
    return 0 if result.succeeded else 1


def _cmd_stats(args: argparse.Namespace) -> int:
    project = load_project(args.project)
    role = DatasetRole(args.role)
    stats = project.statistics(role)
    if not stats:
        print(f"The {role.value} dataset is empty.")
        return 0
    for s in stats:
        print(f"{s.display_name}: {s.total} entries ({s.statistics_display})")
        if project.registry.require(s.data_type).has_scenarios:
            for label, n in s.counts.items():
                print(f"  {label}: {n}")
    return 0


def _cmd_provenance(args: argparse.Namespace) -> int:
    project = load_project(args.project)
    nodes = project.provenance_tree(DatasetRole(args.role))
    if args.json:
        print(json.dumps([n.to_dict() for n in nodes], indent=2))
    elif nodes:
        print(render_tree(nodes))
    else:
        print("No import sources recorded.")
    return 0


def _cmd_mode(args: argparse.Namespace) -> int:
    project = load_project(args.project)
    if project.change_mode(ProjectMode(args.mode), confirm=args.yes):
        save_project(project, args.project)
        print(f"Project mode is now {args.mode}; all imported data was removed.")
    else:
        print(f"Project is already in {args.mode} mode.")
    return 0


def _cmd_clear(args: argparse.Namespace) -> int:
    project = load_project(args.project)
    role = DatasetRole(args.role)
    if not args.yes and not project.slot(role).dataset.is_empty():
        raise ConfirmationRequiredError(f"Clearing the {role.value} dataset deletes its entries")
    removed = project.clear_dataset(role)
    save_project(project, args.project)
    print(f"Removed {removed} entries from the {role.value} dataset.")
    return 0


def _cmd_rename_scenario(args: argparse.Namespace) -> int:
    project = load_project(args.project)
    n = project.rename_scenario(DatasetRole(args.role), args.old, args.new)
    if n == 0:
        print(f"No entries found for scenario '{args.old}'.", file=sys.stderr)
        return 1
    save_project(project, args.project)
    print(f"Renamed {n} entries: {args.old} -> {args.new}")
    return 0


_COMMANDS = {
    "init": _cmd_init,
    "validate-mapping": _cmd_validate_mapping,
    "scan": _cmd_scan,
    "plan": _cmd_plan,
    "import": _cmd_import,
    "stats": _cmd_stats,
    "provenance": _cmd_provenance,
    "mode": _cmd_mode,
    "clear": _cmd_clear,
    "rename-scenario": _cmd_rename_scenario,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        return _COMMANDS[args.command](args)
    except (FileNotFoundError, json.JSONDecodeError, MappingError, PlanValidationError) as e:
        print(f"Input error: {e}", file=sys.stderr)
        return 2
    except ValidationError as e:
        print("Input validation error:", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2
    except ConfirmationRequiredError as e:
        print(f"{e}. Re-run with --yes to confirm.", file=sys.stderr)
        return 1
    except ScenarioConflictError as e:
        print(f"Scenario error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
