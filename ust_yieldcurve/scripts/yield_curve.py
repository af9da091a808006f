"""Command-line front end: show curves, compare history and manage the cache."""

from __future__ import annotations

import argparse
import sys
from typing import Mapping, Sequence

from ust_yieldcurve import YieldCurveDataSource
from ust_yieldcurve.config import DataSourceConfig
from ust_yieldcurve.exceptions import YieldCurveError
from ust_yieldcurve.ingestion.models import YieldCurve, curves_to_frame
from ust_yieldcurve.ingestion.strategy import Renderer
from ust_yieldcurve.seeds.populate_curve_cache import seed_curve_cache
from ust_yieldcurve.utils.date_range import parse_date
from ust_yieldcurve.utils.logger import get_logger

LOGGER = get_logger(__name__)

__all__ = ["TableRenderer", "format_curve", "main", "parse_args"]

NO_DATA_MESSAGE = "No yield data available"


def _iso_date(value: str):
    try:
        return parse_date(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date {value!r}; expected YYYY-MM-DD") from exc


def _positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid offset {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("offsets must be positive day counts")
    return parsed


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="ust-yieldcurve", description=__doc__)
    parser.add_argument(
        "--cache-dir",
        dest="cache_dir",
        help="Directory holding the per-date cache files (default: $UST_YIELDCURVE_CACHE_DIR)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    show = subparsers.add_parser("show", help="Print the yield curve")
    show.add_argument("--date", type=_iso_date, help="Curve as of this date (default: latest)")

    history = subparsers.add_parser("history", help="Compare the curve with earlier curves")
    history.add_argument("--date", type=_iso_date, help="Base date (default: latest)")
    history.add_argument(
        "--offsets",
        type=_positive_int,
        nargs="+",
        help="Calendar-day offsets for comparison curves (default: 7 14)",
    )

    info = subparsers.add_parser("cache-info", help="Describe the cache entry for a date")
    info.add_argument("--date", type=_iso_date, help="Cache key (default: today)")

    clear = subparsers.add_parser("clear-cache", help="Delete the cache entry for a date")
    clear.add_argument("--date", type=_iso_date, help="Cache key (default: today)")

    seed = subparsers.add_parser("seed", help="Populate the cache for a date window")
    seed.add_argument("--from", dest="start", type=_iso_date, required=True)
    seed.add_argument("--to", dest="end", type=_iso_date, required=True)
    seed.add_argument("--overwrite", action="store_true")
    seed.add_argument("--dry-run", dest="dry_run", action="store_true")
    return parser.parse_args(argv)


def format_curve(curve: YieldCurve) -> str:
    frame = curve.to_frame()
    header = f"US Treasury yield curve {curve.date.isoformat()} ({curve.provenance.value})"
    return f"{header}\n{frame.to_string(index=False)}"


class TableRenderer:
    """Render labelled curves as a plain-text pivot table, one column per label."""

    def render(self, curves: Mapping[str, YieldCurve]) -> str:
        dates = ", ".join(f"{label}={curve.date.isoformat()}" for label, curve in curves.items())
        return f"{dates}\n{curves_to_frame(curves).to_string()}"


def _build_config(args: argparse.Namespace) -> DataSourceConfig:
    overrides = {"cache_dir": args.cache_dir} if args.cache_dir else {}
    return DataSourceConfig.from_env(**overrides)


def _seed(args: argparse.Namespace) -> int:
    config = _build_config(args)
    result = seed_curve_cache(
        args.start,
        args.end,
        cache_dir=config.cache_dir,
        overwrite=args.overwrite,
        dry_run=args.dry_run,
    )
    print(f"written={result.written} skipped={result.skipped} failed={result.failed}")
    if result.failed_years:
        years = ", ".join(str(year) for year in result.failed_years)
        print(f"Treasury feed unavailable for {years}", file=sys.stderr)
    return 0 if result.failed == 0 and not result.failed_years else 1


def _run(args: argparse.Namespace, renderer: Renderer) -> int:
    if args.command == "seed":
        return _seed(args)

    with YieldCurveDataSource(_build_config(args)) as source:
        if args.command == "show":
            curve = source.resolve(args.date)
            if curve is None:
                print(NO_DATA_MESSAGE, file=sys.stderr)
                return 1
            print(format_curve(curve))
            return 0

        if args.command == "history":
            curves = source.resolve_with_history(args.date, args.offsets)
            if not curves:
                print(NO_DATA_MESSAGE, file=sys.stderr)
                return 1
            print(renderer.render(curves))
            return 0

        if args.command == "cache-info":
            info = source.cache_info(args.date)
            print(f"path: {info.path}")
            print(f"exists: {info.exists}")
            if info.error:
                print(f"error: {info.error}")
                return 1
            if info.exists:
                print(f"data date: {info.data_date}")
                print(f"retrieved at: {info.retrieved_at}")
                if info.age_hours is not None:
                    print(f"age: {info.age_hours:.1f}h")
            return 0

        if args.command == "clear-cache":
            cleared = source.clear_cache(args.date)
            print("Cache cleared" if cleared else "No cache file to clear")
            return 0

    LOGGER.error("Unknown command %s", args.command)  # pragma: no cover - argparse guards this
    return 2


def main(argv: Sequence[str] | None = None, *, renderer: Renderer | None = None) -> int:
    args = parse_args(argv)
    try:
        return _run(args, renderer or TableRenderer())
    except YieldCurveError as exc:
        LOGGER.error("%s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
