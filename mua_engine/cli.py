"""Command-line interface for measurement uncertainty analysis."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from mua_engine.analysis import analyze
from mua_engine.models import MeasurementAnalysis


def cmd_analyze(args: argparse.Namespace) -> None:
    """Evaluate the budget defined in a JSON analysis file."""
    try:
        analysis = MeasurementAnalysis.load(args.file)
    except (OSError, ValueError, KeyError) as e:
        print(f"Cannot load {args.file}: {e}", file=sys.stderr)
        sys.exit(1)

    result = analyze(analysis, use_student_t=args.student_t, target_consumer_risk=args.risk)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
    else:
        print(f"{analysis.name}")
        print(result.summary())

    if args.report:
        from mua_engine.reporting import (
            ReportConfig, generate_html_report, generate_text_report, save_report,
        )
        config = ReportConfig(project=analysis.name)
        if args.report.endswith((".html", ".htm")):
            content = generate_html_report(config, {analysis.name: result},
                                           analysis_info=analysis.to_dict())
        else:
            content = generate_text_report(config, {analysis.name: result})
        save_report(content, args.report)
        print(f"Report written to {args.report}")

    if args.plot or args.save_plots:
        from mua_engine.visualize import plot_contributions, plot_guard_band
        contrib_path = guard_path = None
        if args.save_plots:
            root, ext = os.path.splitext(args.save_plots)
            ext = ext or ".png"
            contrib_path = f"{root}_contributions{ext}"
            guard_path = f"{root}_guard_band{ext}"
        plot_contributions(result, save_path=contrib_path)
        plot_guard_band(result, save_path=guard_path)


def cmd_create_example(args: argparse.Namespace) -> None:
    """Write a built-in example analysis file."""
    from mua_engine.examples import EXAMPLES

    analysis = EXAMPLES[args.example]()
    path = args.output or f"{args.example}_example.json"
    analysis.save(path)
    print(f"Created example analysis: {path}")


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(
        prog="mua",
        description="Measurement Uncertainty & Decision Risk Analysis",
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log why components are excluded from the budget")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- analyze ---
    p_analyze = subparsers.add_parser("analyze", help="Evaluate an analysis JSON file")
    p_analyze.add_argument("file", help="Path to analysis JSON file")
    k_mode = p_analyze.add_mutually_exclusive_group()
    k_mode.add_argument("--student-t", dest="student_t", action="store_true", default=None,
                        help="Coverage factor from the Student-t table")
    k_mode.add_argument("--fixed-k", dest="student_t", action="store_false",
                        help="Coverage factor fixed at k=2")
    p_analyze.add_argument("--risk", type=float, default=None,
                           help="Two-sided target consumer risk, e.g. 0.02")
    p_analyze.add_argument("--json", action="store_true",
                           help="Print the result as JSON")
    p_analyze.add_argument("--report", default=None,
                           help="Write a report (.html for HTML, otherwise text)")
    p_analyze.add_argument("--plot", action="store_true",
                           help="Show contribution and guard band charts")
    p_analyze.add_argument("--save-plots", default=None,
                           help="Save charts to files (base path, e.g. output.png)")
    p_analyze.set_defaults(func=cmd_analyze)

    # --- example ---
    p_example = subparsers.add_parser("example", help="Create an example analysis file")
    p_example.add_argument("example", choices=["dcv", "frequency"],
                           help="Which example to create")
    p_example.add_argument("-o", "--output", default=None,
                           help="Output file path")
    p_example.set_defaults(func=cmd_create_example)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    args.func(args)


if __name__ == "__main__":
    main()
