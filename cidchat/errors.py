"""
Failure taxonomy for the chat and archive pipeline.

Every component raises one of these; the HTTP layer turns them into
{"success": false, "error": ...} responses using status_code.
"""

from __future__ import annotations


class CidchatError(Exception):
    """Base class for classified failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigFetchFailed(CidchatError):
    """The node's model list or public config could not be read."""

    status_code = 502


class CompletionFailed(CidchatError):
    """The chat completion call failed at the transport or backend level."""

    status_code = 502


class EmptyConversation(CidchatError):
    status_code = 400


class StorageUploadFailed(CidchatError):
    status_code = 502


class StorageQuotaExceeded(StorageUploadFailed):
    """
    The destination space has no provisioned capacity left.
    Operator-actionable: space_identifier is carried verbatim from the
    backend's error detail so it can be provisioned.
    """

    status_code = 507

    def __init__(self, message: str, space_identifier: str = ""):
        super().__init__(message)
        self.space_identifier = space_identifier


class StorageRetrievalFailed(CidchatError):
    status_code = 502


class ConversationNotFound(CidchatError):
    status_code = 404


class ConversationCorrupt(CidchatError):
    """Stored bytes exist but are not a valid archived conversation."""

    status_code = 422
