"""
Exceptions raised by the SMS scanning layer.

Per-message problems never raise; these cover caller contract
violations and collaborator failures.
"""


class InvalidMessageBatchError(TypeError):
    """
    Raised when scan() receives something that is not a batch of messages
    (None, a string, a non-iterable).
    """

    def __init__(self, message: str, received_type: str = None):
        self.received_type = received_type
        full_message = f"{message} (got {received_type})" if received_type else message
        super().__init__(full_message)


class SmsPermissionDeniedError(PermissionError):
    """Raised when the user declines SMS read access."""


class InboxReadError(RuntimeError):
    """
    Raised when the inbox reader fails to return messages.
    """

    def __init__(self, message: str, limit: int = None):
        self.limit = limit
        super().__init__(message)
