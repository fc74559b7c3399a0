"""
Report generation for checksum verification results.

Turns VerificationResults into a plain dictionary report listing every
discrepancy, suitable for JSON/CSV export or console display.
"""

from datetime import UTC, datetime
from typing import Any

from ..execution import VerificationResult


class DiscrepancyType:
    """Constants for discrepancy types."""

    ROW_COUNT_MISMATCH = "ROW_COUNT_MISMATCH"
    COLUMN_MISMATCH = "COLUMN_MISMATCH"


def _row_count_discrepancy(result: VerificationResult) -> dict[str, Any]:
    return {
        "run_id": result.run_id,
        "control": result.control_relation,
        "test": result.test_relation,
        "column": None,
        "issue_type": DiscrepancyType.ROW_COUNT_MISMATCH,
        "message": (
            f"control(row_count: {result.control.row_count}) "
            f"test(row_count: {result.test.row_count})"
        ),
    }


def _column_discrepancies(result: VerificationResult) -> list[dict[str, Any]]:
    return [
        {
            "run_id": result.run_id,
            "control": result.control_relation,
            "test": result.test_relation,
            "column": column.name,
            "expression": column.expression.sql(),
            "issue_type": DiscrepancyType.COLUMN_MISMATCH,
            "message": match_result.message,
        }
        for column, match_result in result.mismatches.items()
    ]


def _generate_summary(verified: int, matched: int, discrepancies: list[dict[str, Any]]) -> str:
    if verified == matched:
        return f"All {verified} verifications matched"

    mismatched_columns = sum(
        1 for d in discrepancies if d["issue_type"] == DiscrepancyType.COLUMN_MISMATCH
    )
    row_count_mismatches = len(discrepancies) - mismatched_columns
    return (
        f"{verified - matched} of {verified} verifications failed: "
        f"{mismatched_columns} mismatched columns, "
        f"{row_count_mismatches} row count mismatches"
    )


def generate_report(results: list[VerificationResult]) -> dict[str, Any]:
    """
    Generate a verification report

    Args:
        results: Verification results to summarize

    Returns:
        Dictionary containing:
        - status: PASS, FAIL, or NO_DATA
        - total_verifications, verifications_matched, verifications_mismatched
        - discrepancies: one entry per row count or column mismatch
        - summary: Human-readable summary
        - timestamp: Report generation timestamp
    """
    timestamp = datetime.now(UTC).isoformat()

    if not results:
        return {
            "status": "NO_DATA",
            "total_verifications": 0,
            "verifications_matched": 0,
            "verifications_mismatched": 0,
            "discrepancies": [],
            "summary": "No verification results available",
            "timestamp": timestamp,
        }

    discrepancies = []
    matched = 0
    for result in results:
        if result.matched:
            matched += 1
            continue
        if not result.row_count_matched:
            discrepancies.append(_row_count_discrepancy(result))
        discrepancies.extend(_column_discrepancies(result))

    return {
        "status": "PASS" if matched == len(results) else "FAIL",
        "total_verifications": len(results),
        "verifications_matched": matched,
        "verifications_mismatched": len(results) - matched,
        "discrepancies": discrepancies,
        "summary": _generate_summary(len(results), matched, discrepancies),
        "timestamp": timestamp,
    }
