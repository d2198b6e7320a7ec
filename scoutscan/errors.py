"""
Exception taxonomy.

Route handlers map these onto the JSON error envelope; pipeline stages and queue
items catch them locally and record the failure instead of re-raising.
"""


class ScoutScanError(Exception):
    """Base class for all ScoutScan errors."""
    status_code = 500


class ValidationError(ScoutScanError):
    """Missing or empty required input. Never retried."""
    status_code = 400


class AuthError(ScoutScanError):
    """Missing (401) or rejected (403) credential."""
    status_code = 401

    def __init__(self, message='Unauthorized', status_code=401):
        super().__init__(message)
        self.status_code = status_code


class ConfigError(ScoutScanError):
    """Required configuration is missing. Fatal for the request."""
    status_code = 500


class ScanNotFoundError(ScoutScanError):
    status_code = 404

    def __init__(self, scan_id):
        self.scan_id = scan_id
        super().__init__(f"Scan '{scan_id}' not found")


class StageError(ScoutScanError):
    """Raised by a stage adapter when its work cannot complete."""

    def __init__(self, step, message):
        self.step = step
        super().__init__(message)


class ScanTerminalError(ScoutScanError):
    """A status event was appended to a scan that already reached COMPLETED/FAILED."""
    status_code = 409

    def __init__(self, scan_id, step):
        self.scan_id = scan_id
        self.step = step
        super().__init__(f"Scan '{scan_id}' is terminal ({step}) — no further events allowed")


class ProgressRegressionError(ScoutScanError):
    """A non-FAILED status event would lower the scan's percent."""
    status_code = 409


class ScoringConfigError(ScoutScanError):
    """Scoring rule configuration failed validation at load time."""


class UnknownJobTypeError(ScoutScanError):
    """A queue item names a job type with no registered handler."""

    def __init__(self, job_type):
        self.job_type = job_type
        super().__init__(f"No handler registered for job type '{job_type}'")
