"""
Error taxonomy shared by services and pages.

Pages catch these and surface them to the user; services never swallow them.
"""


class AgendaError(Exception):
    """Base class for every error raised on purpose by the app."""


class ValidationError(AgendaError):
    """Input rejected before anything was written."""


class EmptyDocumentError(ValidationError):
    """Confirmation of an empty document that needs an explicit override."""


class TrashDisabledError(ValidationError):
    """Soft delete requested while the trash feature is switched off."""


class InvalidTransitionError(AgendaError):
    """Document lifecycle transition not allowed from the current status."""


class StorageError(AgendaError):
    """The underlying database failed; the caller may retry."""


class RenderError(AgendaError):
    """The document could not be turned into a PDF."""


class BackupImportError(AgendaError):
    """Backup payload is malformed."""
