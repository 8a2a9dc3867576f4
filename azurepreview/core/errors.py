"""Error taxonomy for provider operations"""

from typing import Optional

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError


class ProviderError(Exception):
    """Base class for every error raised by the provider"""


class FormatError(ProviderError):
    """A resource identifier does not have the expected shape"""


class ValidationError(ProviderError):
    """A configuration value failed schema validation"""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"{key}: {message}")


class NotFoundError(ProviderError):
    """The remote object does not exist (HTTP 404)"""


class ApiOperationError(ProviderError):
    """An Azure SDK call failed for a reason other than 404"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


def is_not_found(error: Exception) -> bool:
    """Check whether an SDK exception represents a 404"""
    if isinstance(error, (ResourceNotFoundError, NotFoundError)):
        return True
    return isinstance(error, HttpResponseError) and getattr(error, "status_code", None) == 404


def wrap_api_error(error: Exception, message: str) -> ApiOperationError:
    """Wrap an SDK failure with a message naming the operation and target"""
    status_code = getattr(error, "status_code", None)
    return ApiOperationError(f"{message}: {error}", status_code=status_code)
