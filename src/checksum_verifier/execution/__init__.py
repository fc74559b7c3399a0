"""
Running checksum queries against control and test backends.
"""

from .executor import CursorQueryExecutor, QueryExecutor
from .verifier import ChecksumVerifier, VerificationResult, VerificationStatus

__all__ = [
    'QueryExecutor',
    'CursorQueryExecutor',
    'ChecksumVerifier',
    'VerificationResult',
    'VerificationStatus',
]
