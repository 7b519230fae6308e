"""Command line entry points for RFM customer segmentation."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

from customer_segmentation.analyses.dataset_profile import score_distribution
from customer_segmentation.foundation.ingestion import (
    IngestionConfig,
    parse_order_records,
)
from customer_segmentation.pandas import (
    rfm_analysis_to_dataframe,
    rfm_scores_to_dataframe,
    segment_summary_to_dataframe,
    unique_orders_to_dataframe,
)
from customer_segmentation.pipeline import RFMSegmentation, run_rfm_segmentation

logger = logging.getLogger(__name__)


MAX_INPUT_BYTES = 25 * 1024 * 1024  # 25 MiB cap to avoid accidental OOM


def _load_rows(path: Path, input_format: str | None = None) -> list[dict[str, Any]]:
    resolved = path.resolve()
    size = resolved.stat().st_size
    if size > MAX_INPUT_BYTES:
        raise ValueError(
            f"Input file {resolved} is {size} bytes; exceeds limit of {MAX_INPUT_BYTES} bytes"
        )

    input_format = input_format or ("json" if path.suffix.lower() == ".json" else "csv")
    if input_format == "json":
        with path.open("r", encoding="utf-8") as fh:
            payload = json.load(fh)
        if not isinstance(payload, list):
            raise ValueError("Expected a list of order records in the input file")
        return [dict(item) for item in payload]

    # Keep identifiers and dates as text; parsing happens at ingestion
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    return df.to_dict("records")


def _resolve_output_dir(path: Path) -> Path:
    output_dir = path.resolve()
    cwd = Path.cwd().resolve()
    try:
        output_dir.relative_to(cwd)
    except ValueError:
        raise ValueError(
            f"Output path {output_dir} must reside within the current working directory"
        )
    return output_dir


def _summary_payload(result: RFMSegmentation) -> dict[str, Any]:
    return {
        "reference_date": result.reference_date.isoformat()
        if result.reference_date
        else None,
        "unique_orders": len(result.unique_orders),
        "customers": len(result.rfm_analysis),
        "segments": [
            {
                "segment": item.segment.value,
                "customer_count": item.customer_count,
                "average_monetary": float(item.average_monetary),
            }
            for item in result.summary()
        ],
    }


def _render_report(result: RFMSegmentation) -> str:
    profile = result.profile
    report_lines = []
    report_lines.append("# RFM Customer Segmentation Report\n")
    report_lines.append(
        f"**Generated:** {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
    )
    report_lines.append(f"**Reference Date:** {result.reference_date.isoformat()}\n")

    report_lines.append("## Dataset\n")
    report_lines.append(f"- **Order Lines:** {profile.total_records}")
    report_lines.append(f"- **Unique Orders:** {profile.unique_orders}")
    report_lines.append(f"- **Duplicate Lines Dropped:** {profile.duplicate_lines}")
    report_lines.append(f"- **Customers:** {profile.customer_count}")
    report_lines.append(
        f"- **Order Window:** {profile.first_order_date} to {profile.last_order_date}\n"
    )

    report_lines.append("## Segments\n")
    report_lines.append("| Segment | Customers | Average Monetary |")
    report_lines.append("|---|---:|---:|")
    for item in result.summary():
        report_lines.append(
            f"| {item.segment.value} | {item.customer_count} | {item.average_monetary} |"
        )
    report_lines.append("")

    report_lines.append("## Score Distribution\n")
    report_lines.append("| Score | R | F | M |")
    report_lines.append("|---:|---:|---:|---:|")
    distributions = {
        dimension: score_distribution(result.rfm_scores, dimension)
        for dimension in ("r", "f", "m")
    }
    for score in sorted(distributions["r"]):
        report_lines.append(
            f"| {score} | {distributions['r'][score]} | "
            f"{distributions['f'][score]} | {distributions['m'][score]} |"
        )
    return "\n".join(report_lines) + "\n"


def segment_customers_cli(argv: list[str] | None = None) -> int:
    """Segment customers from a sales export.

    This command runs the complete RFM segmentation:
    1. Parses order lines (CSV or JSON list of objects)
    2. Deduplicates lines to one record per order id
    3. Aggregates recency, frequency and monetary value per customer
    4. Scores each metric into quartiles and assigns segments
    5. Writes the result sets as CSV files, or prints the segment summary

    Args:
        argv: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = argparse.ArgumentParser(
        description="Segment customers by Recency, Frequency and Monetary value"
    )
    parser.add_argument("input", type=Path, help="Path to CSV or JSON sales export")
    parser.add_argument(
        "--format",
        dest="input_format",
        choices=["csv", "json"],
        help="Input format (defaults to the file extension, CSV otherwise)",
    )
    parser.add_argument(
        "--date-encoding",
        choices=["iso", "serial"],
        default="iso",
        help="How dates are stored: ISO-8601 text or spreadsheet serial numbers (default: iso)",
    )
    parser.add_argument("--order-id-col", default="ORDER_ID")
    parser.add_argument("--customer-name-col", default="CUSTOMER_NAME")
    parser.add_argument("--order-date-col", default="ORDER_DATE")
    parser.add_argument("--ship-date-col", default="SHIP_DATE")
    parser.add_argument("--sales-col", default="SALES")
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for unique_orders.csv, rfm_scores.csv, rfm_analysis.csv "
        "and segment_summary.csv. Prints the summary as JSON when omitted.",
    )
    parser.add_argument(
        "--report",
        type=Path,
        help="Optional path for a Markdown segmentation report",
    )

    args = parser.parse_args(argv)
    config = IngestionConfig(
        order_id_col=args.order_id_col,
        customer_name_col=args.customer_name_col,
        order_date_col=args.order_date_col,
        ship_date_col=args.ship_date_col,
        sales_col=args.sales_col,
        date_encoding=args.date_encoding,
    )

    logger.info(f"Loading order lines from {args.input}")
    rows = _load_rows(args.input, args.input_format)
    records = parse_order_records(rows, config)

    if not records:
        logger.error("No order records found in input file")
        return 1

    result = run_rfm_segmentation(records)
    logger.info(
        f"Segmented {len(result.rfm_analysis)} customers "
        f"(reference date {result.reference_date})"
    )

    if args.output_dir:
        output_dir = _resolve_output_dir(args.output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        unique_orders_to_dataframe(result.unique_orders).to_csv(
            output_dir / "unique_orders.csv", index=False
        )
        rfm_scores_to_dataframe(result.rfm_scores).to_csv(
            output_dir / "rfm_scores.csv", index=False
        )
        rfm_analysis_to_dataframe(result.rfm_analysis).to_csv(
            output_dir / "rfm_analysis.csv", index=False
        )
        segment_summary_to_dataframe(result.summary()).to_csv(
            output_dir / "segment_summary.csv", index=False
        )
        logger.info(f"Segmentation results exported to {output_dir}")
    else:  # stdout fallback enables piping in shell usage.
        json.dump(_summary_payload(result), fp=sys.stdout, indent=2)
        print()

    if args.report:
        report_path = _resolve_output_dir(args.report)
        report_path.parent.mkdir(parents=True, exist_ok=True)
        with report_path.open("w", encoding="utf-8") as f:
            f.write(_render_report(result))
        logger.info(f"Segmentation report exported to {report_path}")

    return 0


def main() -> None:
    raise SystemExit(segment_customers_cli())


if __name__ == "__main__":  # pragma: no cover
    main()
