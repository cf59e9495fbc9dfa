"""Error taxonomy shared by the engine, the jobs and the HTTP layer."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for every error the engine surfaces to a caller."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "type": type(self).__name__}


class ValidationError(EngineError):
    """Malformed lineup, unknown class, over the point cap."""

    status_code = 400


class ConflictError(EngineError):
    """Lineup key already claimed or trade quota exhausted."""

    status_code = 409


class NotFoundError(EngineError):
    """No active season, missing corps dataset, unknown job or corps."""

    status_code = 404


class TransientError(EngineError):
    """Document store I/O failure. Safe to re-run."""

    status_code = 503


class DataIntegrityWarning(UserWarning):
    """No data point exists for a corps/caption; the score degrades to 0."""
