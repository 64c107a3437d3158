from typing import Optional


class OpcLinkError(Exception):
    """Base error raised by OpcLinkClient."""


class OpcLinkHTTPError(OpcLinkError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class OpcLinkConnectionError(OpcLinkError):
    """The API could not be reached."""
