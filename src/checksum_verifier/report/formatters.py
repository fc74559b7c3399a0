"""
Report formatting and export utilities.

Exports verification reports as JSON, CSV, or console text.
"""

import csv
import json
from typing import Any

CSV_HEADER = ["Run", "Control", "Test", "Column", "Issue Type", "Message"]


def export_report_json(report: dict[str, Any], output_path: str) -> None:
    """
    Export report to JSON file

    Args:
        report: Report dictionary
        output_path: Path to output file
    """
    with open(output_path, 'w') as f:
        json.dump(report, f, indent=2)


def export_report_csv(report: dict[str, Any], output_path: str) -> None:
    """
    Export report discrepancies to CSV file, one row per discrepancy

    Args:
        report: Report dictionary
        output_path: Path to output file
    """
    with open(output_path, 'w', newline='') as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)

        for discrepancy in report.get("discrepancies", []):
            writer.writerow([
                discrepancy.get("run_id", ""),
                discrepancy.get("control", ""),
                discrepancy.get("test", ""),
                discrepancy.get("column") or "",
                discrepancy.get("issue_type", ""),
                discrepancy.get("message", ""),
            ])


def format_report_console(report: dict[str, Any]) -> str:
    """
    Format report for console output

    Args:
        report: Report dictionary

    Returns:
        Formatted string for console display
    """
    lines = [
        "=" * 80,
        "CHECKSUM VERIFICATION REPORT",
        "=" * 80,
        f"Status: {report['status']}",
        f"Timestamp: {report['timestamp']}",
        f"Total Verifications: {report['total_verifications']}",
        f"Matched: {report['verifications_matched']}",
        f"Mismatched: {report['verifications_mismatched']}",
        "",
        "SUMMARY",
        "-" * 80,
        report['summary'],
        "",
    ]

    if report['discrepancies']:
        lines.append("DISCREPANCIES")
        lines.append("-" * 80)

        for disc in report['discrepancies']:
            lines.append(f"{disc['control']} vs {disc['test']}")
            if disc.get('column'):
                lines.append(f"  Column: {disc['column']}")
            lines.append(f"  Issue: {disc['issue_type']}")
            lines.append(f"  Details: {disc['message']}")
            lines.append("")

    lines.append("=" * 80)

    return "\n".join(lines)
