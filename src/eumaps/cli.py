"""CLI entrypoint for eumaps."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from .config import AppConfig, load_config, load_map_request
from .errors import EumapsError
from .member_states import (
    MemberStateTable,
    default_member_states,
    load_member_states,
    parse_date,
    resolve_membership,
)
from .render import format_render_lines, run_make_map
from .simulate import as_data_mapping, simulate_data
from .util import ensure_directories, setup_logging, write_json

LOGGER = logging.getLogger("eumaps.cli")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="eumaps",
        description="Choropleth maps of EU member states.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    list_p = subparsers.add_parser(
        "list-member-states",
        help="List member states (all, or those active on --date).",
    )
    add_common(list_p)
    list_p.add_argument("--date", default=None, help="Only states active on YYYY-MM-DD.")

    sim_p = subparsers.add_parser("simulate", help="Write random data for active member states.")
    add_common(sim_p)
    sim_p.add_argument("--output", required=True, help="JSON file to write.")
    sim_p.add_argument("--date", default=None, help="Membership date YYYY-MM-DD (default today).")
    sim_p.add_argument("--min", dest="value_min", type=float, default=0.0)
    sim_p.add_argument("--max", dest="value_max", type=float, default=1.0)
    sim_p.add_argument(
        "--missing",
        action="append",
        default=[],
        help="Member state to leave without a value. Can be repeated.",
    )
    sim_p.add_argument("--seed", type=int, default=None)

    map_p = subparsers.add_parser("make-map", help="Compose and render one map request file.")
    add_common(map_p)
    map_p.add_argument("map_file", help="Map request YAML/JSON.")
    map_p.add_argument("--output", default=None, help="Override the output image path.")

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(Path(args.config))
    setup_logging(cfg.paths.logs_dir / "eumaps.log", verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _load_optional_config(args: argparse.Namespace) -> AppConfig | None:
    """Like `_load_and_setup`, but commands that only read the table may run without a config."""
    config_path = Path(args.config)
    if not config_path.exists():
        setup_logging(verbose=args.verbose)
        LOGGER.debug("No config at %s; using packaged member state table.", config_path)
        return None
    return _load_and_setup(args)


def _member_state_table(cfg: AppConfig | None) -> MemberStateTable:
    if cfg is None or cfg.paths.member_states is None:
        return default_member_states()
    return load_member_states(cfg.paths.member_states)


def _run_list_member_states(table: MemberStateTable, *, date: str | None) -> int:
    if date is None:
        rows = list(table)
    else:
        rows = list(resolve_membership(table, date).active)
        LOGGER.info("%d member states on %s", len(rows), parse_date(date).isoformat())
    for row in rows:
        end = row.end_date.isoformat() if row.end_date else ""
        print(
            f"{row.member_state_id:>3}  {row.code:<2}  {row.name:<16} "
            f"{row.start_date.isoformat()}  {end}"
        )
    return 0


def _run_simulate(
    table: MemberStateTable,
    *,
    output: Path,
    date: str | None,
    value_min: float,
    value_max: float,
    missing: Sequence[str],
    seed: int | None,
) -> int:
    rows = simulate_data(
        table,
        date=date,
        value_min=value_min,
        value_max=value_max,
        missing=missing or None,
        seed=seed,
    )
    write_json(output, as_data_mapping(rows))
    LOGGER.info("Simulated data for %d member states written to %s", len(rows), output)
    return 0


def _run_make_map(cfg: AppConfig, *, map_file: str, output: str | None) -> int:
    try:
        request = load_map_request(map_file)
    except (OSError, ValueError) as exc:
        LOGGER.error("Invalid map request %s: %s", map_file, exc)
        return 1
    report = run_make_map(
        cfg,
        request,
        output_path=None if output is None else Path(output).resolve(),
    )
    for line in format_render_lines(report):
        LOGGER.info(line)
    return 0 if report.ok else 1


def _dispatch(args: argparse.Namespace) -> int:
    command = str(args.command)
    if command == "make-map":
        return _run_make_map(
            _load_and_setup(args), map_file=str(args.map_file), output=args.output
        )

    cfg = _load_optional_config(args)
    try:
        table = _member_state_table(cfg)
        if command == "list-member-states":
            return _run_list_member_states(table, date=args.date)
        if command == "simulate":
            return _run_simulate(
                table,
                output=Path(args.output),
                date=args.date,
                value_min=float(args.value_min),
                value_max=float(args.value_max),
                missing=[str(item) for item in args.missing],
                seed=args.seed,
            )
    except (EumapsError, OSError, ValueError) as exc:
        LOGGER.error("%s failed: %s", command, exc)
        return 1
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
