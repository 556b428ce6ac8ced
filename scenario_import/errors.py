"""
Errors
======

Exception hierarchy shared by the import pipeline.
"""


class ScenarioImportError(Exception):
    """Base class for all import engine errors."""


class FileImportError(ScenarioImportError):
    """A single source file could not be read or parsed."""

    def __init__(self, file_path: str, message: str):
        super().__init__(message)
        self.file_path = file_path


class UnsupportedFileTypeError(FileImportError):
    """The file extension has no registered reader."""


class MappingError(ScenarioImportError):
    """A field-mapping document is malformed."""


class PlanValidationError(ScenarioImportError):
    """An import plan with invalid rows was submitted for commit."""

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.errors = list(errors or [])


class ConfirmationRequiredError(ScenarioImportError):
    """A destructive operation was requested without confirmation."""


class ScenarioConflictError(ScenarioImportError):
    """A scenario rename would collide with an existing label."""
