"""
Control/test checksum verification workflow.

ChecksumVerifier builds the checksum query for both relations, runs the
control and test executions (in parallel by default), and compares the two
results column by column.

Usage:
    verifier = ChecksumVerifier(VerifierConfig.from_env())
    result = verifier.verify(
        columns,
        control_relation="prod.sales.orders",
        test_relation="shadow.sales.orders",
        control_executor=CursorQueryExecutor(control_cursor),
        test_executor=CursorQueryExecutor(test_cursor),
    )
    if not result.matched:
        for column, mismatch in result.mismatches.items():
            print(column.name, mismatch.message)
"""

import contextvars
import time
import uuid
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum

from opentelemetry import trace

from ..checksum import (
    ChecksumQuery,
    ChecksumResult,
    ChecksumValidator,
    Column,
    ColumnMatchResult,
)
from ..config import VerifierConfig
from ..utils.logging import ContextLogger
from ..utils.metrics import VerificationMetrics
from ..utils.tracing import add_span_attributes, add_span_event, trace_operation
from .executor import QueryExecutor


class VerificationStatus(str, Enum):
    SUCCEEDED = "SUCCEEDED"
    ROW_COUNT_MISMATCH = "ROW_COUNT_MISMATCH"
    COLUMN_MISMATCH = "COLUMN_MISMATCH"
    FAILED = "FAILED"


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of one control/test verification."""

    run_id: str
    control_relation: str
    test_relation: str
    control: ChecksumResult
    test: ChecksumResult
    mismatches: dict[Column, ColumnMatchResult] = field(default_factory=dict)
    duration: float = 0.0

    @property
    def row_count_matched(self) -> bool:
        return self.control.row_count == self.test.row_count

    @property
    def matched(self) -> bool:
        return self.row_count_matched and not self.mismatches

    @property
    def status(self) -> VerificationStatus:
        if not self.row_count_matched:
            return VerificationStatus.ROW_COUNT_MISMATCH
        if self.mismatches:
            return VerificationStatus.COLUMN_MISMATCH
        return VerificationStatus.SUCCEEDED


class ChecksumVerifier:
    """
    Runs checksum verification between a control and a test relation.
    """

    def __init__(
        self,
        config: VerifierConfig | None = None,
        metrics: VerificationMetrics | None = None,
    ):
        self.config = config or VerifierConfig()
        self.validator = ChecksumValidator(self.config)
        self.metrics = metrics or VerificationMetrics()

    def verify(
        self,
        columns: list[Column],
        control_relation: str,
        test_relation: str,
        control_executor: QueryExecutor,
        test_executor: QueryExecutor,
    ) -> VerificationResult:
        """
        Verify that test produces the same data as control

        Args:
            columns: Columns to verify (same names and types on both sides)
            control_relation: Relation name of the control run
            test_relation: Relation name of the test run
            control_executor: Runs queries against the control backend
            test_executor: Runs queries against the test backend

        Returns:
            VerificationResult with row counts and mismatched columns

        Raises:
            InvalidColumnError, UnsupportedTypeError: If the columns are unusable
            TimeoutError: If concurrent queries do not finish within query_timeout
            Exception: Query execution failures, propagated unchanged
        """
        run_id = uuid.uuid4().hex[:12]
        log = ContextLogger(
            __name__,
            run_id=run_id,
            control=control_relation,
            test=test_relation,
        )
        start_time = time.monotonic()

        with trace_operation(
            "checksum_verification",
            run_id=run_id,
            control=control_relation,
            test=test_relation,
            column_count=len(columns),
        ):
            control_query = self.validator.build_checksum_query(control_relation, columns)
            test_query = self.validator.build_checksum_query(test_relation, columns)
            log.info(
                f"Starting checksum verification of {len(columns)} columns "
                f"({len(control_query.field_names)} checksum fields)"
            )

            try:
                control_result, test_result = self._execute(
                    control_query, test_query, control_executor, test_executor
                )
            except Exception as e:
                duration = time.monotonic() - start_time
                self.metrics.record_run(VerificationStatus.FAILED.value, duration)
                log.error(f"Checksum query execution failed: {type(e).__name__}: {e}")
                raise

            add_span_event("comparison_started")
            mismatches = self.validator.compare(columns, control_result, test_result)

            result = VerificationResult(
                run_id=run_id,
                control_relation=control_relation,
                test_relation=test_relation,
                control=control_result,
                test=test_result,
                mismatches=mismatches,
                duration=time.monotonic() - start_time,
            )

            if not result.row_count_matched:
                self.metrics.record_row_count_mismatch(
                    control_result.row_count, test_result.row_count
                )
            for column in mismatches:
                strategy = self.validator.strategy_for(column)
                self.metrics.record_column_mismatch(strategy.value)
            self.metrics.record_run(result.status.value, result.duration)

            add_span_attributes(
                status=result.status.value,
                mismatched_columns=len(mismatches),
                control_row_count=control_result.row_count,
                test_row_count=test_result.row_count,
            )
            log.info(
                f"Checksum verification finished: {result.status.value}, "
                f"{len(mismatches)} mismatched columns in {result.duration:.2f}s"
            )
            return result

    def _run_side(
        self,
        side: str,
        executor: QueryExecutor,
        query: ChecksumQuery,
    ) -> ChecksumResult:
        with trace_operation(
            "checksum_query",
            kind=trace.SpanKind.CLIENT,
            side=side,
            relation=query.source.sql(),
        ) as span:
            result = executor.execute(query)
            span.set_attribute("row_count", result.row_count)
            return result

    def _execute(
        self,
        control_query: ChecksumQuery,
        test_query: ChecksumQuery,
        control_executor: QueryExecutor,
        test_executor: QueryExecutor,
    ) -> tuple[ChecksumResult, ChecksumResult]:
        if not self.config.run_concurrently:
            return (
                self._run_side("control", control_executor, control_query),
                self._run_side("test", test_executor, test_query),
            )

        pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="checksum-query")
        try:
            # Each side runs in its own copy of the caller's context so spans nest
            control_future = pool.submit(
                contextvars.copy_context().run,
                self._run_side, "control", control_executor, control_query,
            )
            test_future = pool.submit(
                contextvars.copy_context().run,
                self._run_side, "test", test_executor, test_query,
            )
            # One deadline covers both sides. A query still running at the
            # deadline is not interrupted and keeps its executor's cursor busy.
            done, pending = wait(
                [control_future, test_future],
                timeout=self.config.query_timeout,
                return_when=FIRST_EXCEPTION,
            )
            for future in (control_future, test_future):
                if future in done and future.exception() is not None:
                    raise future.exception()
            if pending:
                raise TimeoutError(
                    f"Checksum queries did not finish within {self.config.query_timeout}s"
                )
            return control_future.result(), test_future.result()
        finally:
            pool.shutdown(wait=False, cancel_futures=True)
