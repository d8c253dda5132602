"""StandardAPI client exceptions."""


class StandardAPIError(Exception):
    """Base exception for StandardAPI errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class BadUrl(StandardAPIError):
    """The request URL could not be used."""

    def __init__(self, url: str):
        super().__init__(f"Bad URL: {url}")
        self.url = url


class Timeout(StandardAPIError):
    """The server did not answer in time."""

    def __init__(self, message: str = "Request timed out"):
        super().__init__(message)


class NetworkError(StandardAPIError):
    """Failed to reach the server."""

    def __init__(self, detail: str = ""):
        super().__init__(f"Network error: {detail}" if detail else "Network error")
        self.detail = detail


class BadStatus(StandardAPIError):
    """The server answered with a non-2xx status code."""

    def __init__(self, status_code: int, body: str = ""):
        message = f"Bad status {status_code}"
        if body:
            message = f"{message}: {body}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class BadBody(StandardAPIError):
    """The response body could not be decoded."""

    def __init__(self, error: str | Exception):
        super().__init__(f"Bad body: {error}")
        self.error = error
