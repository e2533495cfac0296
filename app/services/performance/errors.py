"""Error taxonomy for performance scoring and weekly reporting."""

from __future__ import annotations


class PerformanceError(Exception):
    code = "performance_error"
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidConfigError(PerformanceError):
    code = "invalid_config"
    status_code = 400

    def __init__(self, total: int, out_of_range: dict[str, int] | None = None):
        self.total = total
        self.out_of_range = dict(out_of_range or {})
        if self.out_of_range:
            listed = ", ".join(f"{name}={weight}" for name, weight in self.out_of_range.items())
            super().__init__(f"Scoring weights must each be between 0 and 100 (got {listed})")
        else:
            super().__init__(f"Scoring weights must sum to 100 (got {total})")


class NotFoundError(PerformanceError):
    code = "not_found"
    status_code = 404


class EmptyScopeError(PerformanceError):
    code = "empty_scope"
    status_code = 422


class ReportTimeoutError(PerformanceError):
    code = "report_timeout"
    status_code = 504


class _CollectionFailures(PerformanceError):
    def __init__(self, detail: str, failures: dict[str, str]):
        super().__init__(detail)
        self.failures = dict(sorted(failures.items()))

    @property
    def failed_ids(self) -> list[str]:
        return list(self.failures)


class PartialCollectionError(_CollectionFailures):
    """Some members could not be scored; the report was still produced.

    Never raised out of the report generator. It rides on the outcome so
    callers can tell "N of M scored" apart from a clean run.
    """

    code = "partial_collection"
    status_code = 200

    def __init__(self, failures: dict[str, str], total_members: int):
        super().__init__(f"Metrics unavailable for {len(failures)} of {total_members} members", failures)
        self.total_members = total_members


class ScopeCollectionError(_CollectionFailures):
    code = "scope_collection_failed"
    status_code = 503

    def __init__(self, failures: dict[str, str]):
        super().__init__(f"Metrics could not be collected for any of {len(failures)} members", failures)
