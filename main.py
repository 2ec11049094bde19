"""
OKR Dashboard — command-line entry point.

Usage:
    python main.py serve [--host HOST] [--port PORT] [--data-dir DIR]
    python main.py summary PATH
    python main.py template [FUNCTION] [FY] [--output-dir DIR]
"""

import argparse
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent))

from okr_dashboard.config import DATA_DIR, SERVER_HOST, SERVER_PORT
from okr_dashboard.dashboard import get_monthly_frame, get_overview, get_quarterly_frame
from okr_dashboard.ingest import load_dataset
from okr_dashboard.loaders import WorkbookReadError
from okr_dashboard.template import write_template

# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def cmd_serve(args) -> int:
    import uvicorn

    from okr_dashboard.server import create_app

    app = create_app(data_dir=args.data_dir)
    logger.info("OKR Dashboard backend on http://%s:%d", args.host, args.port)
    logger.info("Data directory: %s", Path(args.data_dir).resolve())
    uvicorn.run(app, host=args.host, port=args.port)
    return 0


def cmd_summary(args) -> int:
    """Parse one workbook and print the dashboard figures."""
    try:
        dataset = load_dataset(args.path)
    except WorkbookReadError as exc:
        logger.error("%s", exc)
        return 1

    print("=" * 70)
    print(f"  OKR Dashboard — {Path(args.path).name}")
    print("=" * 70)

    overview = get_overview(dataset)

    print("\n[ 1 ] ANNUAL KPIs")
    print("-" * 40)
    for key, m in overview["annual"].items():
        print(
            f"  {key:12s} | target {m['target']:>10,.2f} | achieved {m['achievement']:>10,.2f}"
            f" {m['unit']:3s} | {m['percentage'] * 100:6.1f}% {m['status']}"
        )

    print("\n[ 2 ] BILLING & COLLECTION")
    print("-" * 40)
    for name, records in (("billing", dataset.monthly_billing), ("collection", dataset.monthly_collection)):
        df = get_monthly_frame(records)
        if df.empty:
            print(f"\n  {name}: sheet not present")
            continue
        print(f"\n  {name}:")
        print(df[["month", "target", "achievement", "percentage", "status"]].to_string(index=False))
        totals = overview[name]
        print(
            f"  total target {totals['target']:,.2f} | achieved {totals['achievement']:,.2f}"
            f" | {totals['percentage'] * 100:.1f}%"
        )

    print("\n[ 3 ] QUARTERLY")
    print("-" * 40)
    for name, records in (
        ("QBRs", dataset.quarterly_qbrs),
        ("Hero Stories", dataset.quarterly_hero_stories),
        ("ARR", dataset.quarterly_arr),
        ("Service Rev", dataset.quarterly_service_rev),
    ):
        df = get_quarterly_frame(records)
        if not df.empty:
            print(f"\n  {name}:")
            print(df.to_string(index=False))

    print("\n[ 4 ] PIPELINE & WEIGHTAGES")
    print("-" * 40)
    pipeline = overview["pipeline"]
    print(f"  Open pipeline:    {pipeline['open_pipeline']:,.2f} Cr")
    print(f"  Remaining target: {pipeline['remaining_target']:,.2f} Cr")
    print(f"  Coverage:         {pipeline['coverage']:.2f}x")
    print(f"  Weight total:     {overview['weight_total']:g}")
    print(f"  Weighted score:   {overview['weighted_score'] * 100:.1f}%")

    print("\n" + "=" * 70)
    return 0


def cmd_template(args) -> int:
    try:
        path = write_template(args.output_dir, args.function, args.fy)
    except ValueError as exc:
        logger.error("%s", exc)
        return 1
    print(f"Template created: {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="OKR Dashboard backend")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP/WebSocket server")
    serve.add_argument("--host", default=SERVER_HOST)
    serve.add_argument("--port", type=int, default=SERVER_PORT)
    serve.add_argument("--data-dir", default=str(DATA_DIR))
    serve.set_defaults(func=cmd_serve)

    summary = sub.add_parser("summary", help="Print the parsed figures of one workbook")
    summary.add_argument("path")
    summary.set_defaults(func=cmd_summary)

    template = sub.add_parser("template", help="Generate an input workbook")
    template.add_argument("function", nargs="?", default="KAM")
    template.add_argument("fy", nargs="?", default="FY26")
    template.add_argument("--output-dir", default=str(DATA_DIR))
    template.set_defaults(func=cmd_template)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
