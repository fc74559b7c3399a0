"""
Checksum verifier

Verifies that a control and a test execution of a query produce equivalent
results by comparing order-independent checksum aggregates per column
instead of comparing rows.

Components:
- checksum: Checksum query generation and mismatch detection
- execution: Running checksum queries on control and test backends
- report: Verification report generation
- config: Tolerance margins and workflow settings

Usage:
    from checksum_verifier.checksum import ChecksumValidator, Column
    from checksum_verifier.execution import ChecksumVerifier
"""

__version__ = "1.0.0"
__all__ = ["checksum", "execution", "report", "config"]
