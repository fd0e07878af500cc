"""
Error taxonomy for the tube map pipeline.

Every error here is a construction-time validation failure: it is raised
before any scene is built and is never recovered from locally. Callers
(the CLI) catch TubeMapError and render an explicit error state instead
of a partially drawn map.
"""

from typing import Optional


class TubeMapError(Exception):
    """Base exception for all fatal dataset errors."""

    def __init__(self, detail: str, error_code: Optional[str] = None):
        self.detail = detail
        self.error_code = error_code or self.__class__.__name__
        super().__init__(detail)


class DatasetLoadError(TubeMapError):
    """A dataset file could not be read or lacks required columns."""

    def __init__(self, dataset: str, path: str, reason: str):
        self.dataset = dataset
        self.path = path
        self.reason = reason
        super().__init__(
            detail=f"Failed to load {dataset} from {path}: {reason}",
            error_code="DATASET_LOAD_ERROR",
        )


class MalformedRecord(TubeMapError):
    """A field could not be parsed into its declared type."""

    def __init__(self, dataset: str, row: int, field: str, raw_value: str):
        self.dataset = dataset
        self.row = row
        self.field = field
        self.raw_value = raw_value
        super().__init__(
            detail=f"Malformed {dataset} row {row}: field '{field}' has invalid value {raw_value!r}",
            error_code="MALFORMED_RECORD",
        )


class UnresolvedReference(TubeMapError):
    """A connection refers to a station or line that does not exist."""

    KINDS = ("station", "route")

    def __init__(self, connection_row: int, missing_key: str, kind: str):
        if kind not in self.KINDS:
            raise ValueError(f"Unknown reference kind: {kind}")
        self.connection_row = connection_row
        self.missing_key = missing_key
        self.kind = kind
        super().__init__(
            detail=f"Connection row {connection_row} references unknown {kind} {missing_key!r}",
            error_code="UNRESOLVED_REFERENCE",
        )


class DuplicateKey(TubeMapError):
    """A key appeared twice while the strict duplicate policy is active."""

    def __init__(self, dataset: str, key: str, row: int):
        self.dataset = dataset
        self.key = key
        self.row = row
        super().__init__(
            detail=f"Duplicate {dataset} key {key!r} at row {row}",
            error_code="DUPLICATE_KEY",
        )


class EmptyDataset(TubeMapError):
    """No stations are available to derive a projection from."""

    def __init__(self, detail: str = "Cannot project an empty station set"):
        super().__init__(detail=detail, error_code="EMPTY_DATASET")
