"""Command line interface for running a lead import."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .config import ConfigurationError, ImportSettings, build_rule_sets, load_configuration
from .errors import LeadImportError
from .ingestion.exporters import export_import_report
from .orchestrator import LeadImportOrchestrator


def build_parser(prog: str | None = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Import leads from a CRM or ad-platform export into a campaign",
    )
    parser.add_argument("input", help="Path to the export file (CSV or XLSX)")
    parser.add_argument("--grouping", required=True, help="Campaign id the leads are added to")
    parser.add_argument("--stage", required=True, help="Initial stage id inside the campaign")
    parser.add_argument("--assignee", help="Team member id that receives every lead")
    parser.add_argument(
        "--auto-distribute",
        action="store_true",
        help="Round-robin leads across the members given with --member",
    )
    parser.add_argument(
        "--member",
        action="append",
        default=[],
        dest="members",
        help="Team member id for automatic distribution (repeatable)",
    )
    parser.add_argument("--source-kind", default="kommo", help="Header vocabulary of the export (e.g. kommo, meta_ads)")
    parser.add_argument("--label", help="Human readable label used in the import tag name")
    parser.add_argument(
        "--kind",
        choices=["delimited", "spreadsheet"],
        default=None,
        help="File kind; inferred from the extension when omitted",
    )
    parser.add_argument("--config", help="Optional configuration file (YAML or JSON)")
    parser.add_argument("--report", help="Write the import report to this CSV/XLSX path")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run against an empty in-memory store instead of Supabase",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )
    return parser


def parse_args(argv: list[str] | None = None, prog: str | None = None) -> argparse.Namespace:
    return build_parser(prog).parse_args(argv)


def main(argv: list[str] | None = None, prog: str | None = None) -> int:
    """Run one import. Called without arguments, print usage and return 2."""

    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        build_parser(prog).print_help()
        return 2

    args = parse_args(argv, prog)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))

    try:
        config = load_configuration(args.config)
        settings = ImportSettings.from_config(config)
        rule_sets = build_rule_sets(config)
    except ConfigurationError as exc:
        logging.error("%s", exc)
        return 1

    if args.dry_run:
        from .store.memory import InMemoryLeadStore

        store = InMemoryLeadStore()
    else:
        from .store.supabase_store import SupabaseLeadStore

        store = SupabaseLeadStore()

    orchestrator = LeadImportOrchestrator(store, rule_sets=rule_sets, settings=settings)

    def report_progress(percent: int) -> None:
        logging.info("Progress: %s%%", percent)

    try:
        result = orchestrator.run(
            args.input,
            grouping_id=args.grouping,
            stage_id=args.stage,
            fixed_assignee_id=args.assignee,
            auto_distribute=args.auto_distribute,
            member_ids=args.members,
            source_kind=args.source_kind,
            import_label=args.label,
            file_kind=args.kind,
            progress=report_progress,
        )
    except LeadImportError as exc:
        logging.error("Import failed: %s", exc)
        return 1

    print(result.summary())
    if result.distribution:
        for member_id, count in result.distribution.items():
            print(f"  {member_id}: {count}")
    if args.report:
        export_import_report(result, args.report)
        logging.info("Import report written to %s", Path(args.report).resolve())
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
