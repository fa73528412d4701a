class IpfsIoError(Exception):
    """Base exception for all ipfsio errors."""
    pass

class InvalidURLError(IpfsIoError):
    """Raised when a URL string cannot be parsed into a request target."""
    pass

class InvalidSourceError(InvalidURLError):
    """Raised when a fetch source is not a usable http(s) URL."""
    pass

class InvalidTargetError(InvalidURLError):
    """Raised when a send target is not a usable http(s) URL."""
    pass

class TransportError(IpfsIoError):
    """Raised when a request was issued but did not succeed."""
    pass

class NetworkError(TransportError):
    """Raised when the connection fails (DNS, refused, reset, timeout)."""
    pass

class InvalidRequestError(TransportError):
    """Raised when the daemon rejects the request (4xx)."""
    pass

class DaemonError(TransportError):
    """Raised when the daemon fails to handle the request (5xx)."""
    pass

class EmptyResponseError(IpfsIoError):
    """Raised when a response body was expected but none arrived."""
    pass

class PathNotFoundError(IpfsIoError):
    """Raised when a path handed to send_paths does not exist."""
    pass

class SourceUnreadableError(IpfsIoError):
    """Raised when a file exists but its content cannot be read."""
    pass

class MultipartFinishedError(IpfsIoError):
    """Raised when a finalized multipart body is mutated or sent again."""
    pass
