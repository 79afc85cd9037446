"""Export error taxonomy.

Each stage of a cycle wraps client failures in its own type so logs and
metrics say where a cycle went wrong. None of these are fatal to the process.
"""


class ExportError(Exception):
    """Base class for export pipeline failures."""

    stage = "export"


class ProbeError(ExportError):
    """The data-availability COUNT query failed (the check fails open)."""

    stage = "probe"


class AggregationError(ExportError):
    """One aggregator's grouped query failed; it contributes zero rows."""

    stage = "aggregate"

    def __init__(self, data_type: str, message: str):
        super().__init__(f"{data_type}: {message}")
        self.data_type = data_type


class UploadError(ExportError):
    """An artifact could not be written to object storage."""

    stage = "upload"

    def __init__(self, object_path: str, message: str):
        super().__init__(f"{object_path}: {message}")
        self.object_path = object_path


class CycleError(ExportError):
    """Anything unexpected that escaped a cycle; the watermark stays put."""

    stage = "cycle"
