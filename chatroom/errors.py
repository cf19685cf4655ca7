class ChatroomError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ChatroomError):
    status_code = 404


class RemoteAPIError(ChatroomError):
    """The assistant service rejected a call or returned something unusable."""

    status_code = 502


class RunFailedError(RemoteAPIError):
    pass


class ConfigurationError(ChatroomError):
    status_code = 500
