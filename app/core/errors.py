# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain error types. Controllers map these onto HTTP status codes.
"""


class BatchValidationError(ValueError):
    """A batch configuration cannot be committed as submitted."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class BackendError(RuntimeError):
    """The external store rejected or failed a request. Message is verbatim."""


class CommitInProgressError(RuntimeError):
    """An identical batch is already being submitted."""
