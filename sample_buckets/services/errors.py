from __future__ import annotations


class SampleBucketsException(Exception):
    pass


class FetchFailure(SampleBucketsException):
    """One or more of the concurrent cluster reads behind an evaluation failed."""

    def __init__(self, failures: dict[str, BaseException]) -> None:
        self.failures = dict(failures)
        detail = "; ".join(f"{name}: {exc}" for name, exc in self.failures.items())
        super().__init__(f"Failed to fetch cluster state ({detail})")

    @property
    def sources(self) -> list[str]:
        return list(self.failures)


class InstallSubmissionFailure(SampleBucketsException):
    def __init__(self, names: list[str], cause: BaseException) -> None:
        self.names = list(names)
        self.cause = cause
        super().__init__(f"Failed to submit sample install for {', '.join(self.names)}: {cause}")


class EmptySelectionException(SampleBucketsException):
    pass
