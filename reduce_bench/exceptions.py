"""
Error taxonomy for the measurement harness.

- BackendUnavailable: a device or runtime is absent. Raised during discovery,
  it only prevents the dependent cases from being registered.
- ConstructionFailure: an available backend failed to initialize for one
  case (allocation, kernel build, ...). Fatal for that case only.

Numerical deviation is never an error; it is a measured output.
"""


class ReduceBenchError(Exception):
    """Base class for harness errors."""


class BackendUnavailable(ReduceBenchError):
    """A required device or runtime is not present on this machine."""

    def __init__(self, backend: str, reason: str = ""):
        self.backend = backend
        self.reason = reason
        message = f"{backend} backend unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ConstructionFailure(ReduceBenchError):
    """An accumulator could not be constructed for a registered case."""

    def __init__(self, case: str, cause: BaseException):
        self.case = case
        self.cause = cause
        super().__init__(f"{case}: {type(cause).__name__}: {cause}")
