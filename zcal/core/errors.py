"""Exception types shared by the agents and the HTTP layer."""


class ZcalError(Exception):
    """Base error carrying a client-facing message and an HTTP status."""

    def __init__(self, message: str, status_code: int = 500):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class InvalidRequestError(ZcalError):
    """Client input that passed schema checks but cannot be processed."""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=400)


class AgentError(ZcalError):
    """An agent could not produce a result."""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=500)


class ProviderError(ZcalError):
    """The model provider returned something unusable."""

    def __init__(self, message: str):
        super().__init__(message=message, status_code=500)
