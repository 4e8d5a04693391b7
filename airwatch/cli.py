"""CLI entry point for the air quality refresh service."""

import argparse
import json
import logging

from airwatch.config.loader import get_config_value, load_config
from airwatch.daemon import RefreshDaemon, daemon_status, stop_daemon
from airwatch.errors import AirwatchError
from airwatch.reporting.formatters import (
    format_comparison_text,
    format_complete_text,
    format_cycle_text,
    format_forecast_text,
    format_groups_text,
    format_history_text,
    format_json,
    format_live_text,
    format_timeline_text,
)
from airwatch.service import build_app

DEFAULT_CONFIG = "airwatch.yaml"
VIEW_COMMANDS = ("live", "forecast", "timeline", "groups", "complete", "history", "compare")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="airwatch",
        description="Air quality ingestion, caching and history",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG, help="Config YAML path")
    parser.add_argument("--db", default=None, help="SQLite DB path (overrides config)")
    parser.add_argument("--json", action="store_true", help="Print views as JSON")

    sub = parser.add_subparsers(dest="command")

    # refresh
    sub.add_parser("refresh", help="Run one refresh cycle for all enabled cities")

    # daemon
    daemon_p = sub.add_parser("daemon", help="Refresh continuously on the configured interval")
    daemon_p.add_argument("--stop", action="store_true", help="Stop a running daemon")
    daemon_p.add_argument("--status", action="store_true", help="Show daemon status")

    # views
    live_p = sub.add_parser("live", help="Show current air quality for a city")
    live_p.add_argument("city")
    forecast_p = sub.add_parser("forecast", help="Show the daily forecast for a city")
    forecast_p.add_argument("city")
    timeline_p = sub.add_parser("timeline", help="Show the daily AQI history for a city")
    timeline_p.add_argument("city")
    timeline_p.add_argument("--days", type=int, default=None, help="Window length in days")
    groups_p = sub.add_parser("groups", help="Show advice for sensitive groups")
    groups_p.add_argument("city")
    complete_p = sub.add_parser("complete", help="Show live air quality and forecast together")
    complete_p.add_argument("city")
    history_p = sub.add_parser("history", help="List persisted snapshots for a city")
    history_p.add_argument("city")
    history_p.add_argument("--days", type=int, default=7, help="Days to look back (1-30)")
    compare_p = sub.add_parser("compare", help="Compare live AQI across cities")
    compare_p.add_argument("cities", nargs="*", help="Cities to compare (default: all enabled)")

    # config show / config get
    config_p = sub.add_parser("config", help="Config operations")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Display current config")
    get_p = config_sub.add_parser("get", help="Print one config value")
    get_p.add_argument("key", help="Dotted key, e.g. cache.live_ttl_minutes")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)
    if args.db:
        config = config.model_copy(
            update={"persistence": config.persistence.model_copy(update={"db_path": args.db})}
        )

    if args.command == "config":
        return _cmd_config(config, args)
    elif args.command == "daemon":
        return _cmd_daemon(config, args)

    try:
        if args.command == "refresh":
            return _cmd_refresh(config, args)
        elif args.command in VIEW_COMMANDS:
            return _cmd_view(config, args)
    except (AirwatchError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    parser.print_help()
    return 1


def _cmd_refresh(config, args) -> int:
    app = build_app(config)
    try:
        report = app.scheduler.run_cycle()
    finally:
        app.close()
    print(format_json(report) if args.json else format_cycle_text(report))
    return 0 if report.ok else 1


def _cmd_daemon(config, args) -> int:
    if args.stop:
        return stop_daemon()
    if args.status:
        return daemon_status()
    RefreshDaemon(config).start()
    return 0


def _cmd_view(config, args) -> int:
    app = build_app(config)
    service = app.service
    try:
        if args.command == "live":
            view = service.get_live_view(args.city)
            text = format_live_text(view)
        elif args.command == "forecast":
            view = service.get_forecast_view(args.city)
            text = format_forecast_text(view)
        elif args.command == "timeline":
            days = args.days or config.timeline.window_days
            view = service.get_timeline_view(args.city, days)
            text = format_timeline_text(view)
        elif args.command == "complete":
            view = service.get_complete_view(args.city)
            text = format_complete_text(view)
        elif args.command == "history":
            view = service.get_history(args.city, args.days)
            text = format_history_text(view)
        elif args.command == "compare":
            view = service.compare_cities(args.cities or None)
            text = format_comparison_text(view)
        else:
            live = service.get_live_view(args.city)
            view = service.get_health_groups(args.city)
            if args.json:
                print(json.dumps(
                    [{"group": s.group.name, "risk_level": s.risk_level,
                      "recommendation": s.recommendation} for s in view],
                    indent=2, ensure_ascii=False,
                ))
                return 0
            text = format_groups_text(live.index, view)
    finally:
        app.close()
    print(format_json(view) if args.json else text)
    return 0


def _cmd_config(config, args) -> int:
    if args.config_command == "show":
        print(config.model_dump_json(indent=2))
        return 0
    elif args.config_command == "get":
        try:
            value = get_config_value(config, args.key)
        except (KeyError, IndexError, ValueError) as e:
            print(f"Error: {e}")
            return 1
        if hasattr(value, "model_dump_json"):
            print(value.model_dump_json(indent=2))
        else:
            print(value)
        return 0
    else:
        print("Use: config show | config get KEY")
        return 1
