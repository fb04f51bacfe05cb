"""Translation of botocore errors into provider errors."""

from __future__ import annotations

from botocore.exceptions import ClientError

from ..errors import (
    BadRequestError,
    ConflictError,
    NotAuthorizedError,
    NotFoundError,
    ProviderError,
    ServiceUnavailableError,
    ThrottledError,
)

NOT_FOUND_CODES = {
    "ResourceNotFoundException",
    "DBInstanceNotFound",
    "NoSuchEntity",
    "RepositoryDoesNotExistException",
}

NOT_AUTHORIZED_CODES = {
    "UnauthorizedOperation",
    "AuthFailure",
    "InvalidClientTokenId",
    "ExpiredToken",
}

CONFLICT_CODES = {
    "DependencyViolation",
    "IncorrectState",
    "IncorrectInstanceState",
    "InvalidDBInstanceState",
    "ResourceInUseException",
    "DBInstanceAlreadyExists",
    "Resource.AlreadyAssociated",
    "RepositoryNameExistsException",
}

THROTTLED_CODES = {
    "RequestLimitExceeded",
    "ProvisionedThroughputExceededException",
    "LimitExceededException",
    "TooManyRequestsException",
}


def _is_not_found(code: str) -> bool:
    if code in NOT_FOUND_CODES:
        return True
    return code.endswith("NotFound") or code.endswith("NotFoundFault")


def translate_client_error(error: ClientError, operation: str | None = None) -> ProviderError:
    """Map a botocore ClientError onto the provider error hierarchy.

    Args:
        error: Error raised by a boto3 client call
        operation: Name of the API operation, for context

    Returns:
        Provider error carrying the AWS error code, HTTP status and request id
    """
    response = error.response or {}
    err = response.get("Error", {})
    meta = response.get("ResponseMetadata", {})

    code = str(err.get("Code", ""))
    message = err.get("Message") or str(error)
    status_code = meta.get("HTTPStatusCode")
    request_id = meta.get("RequestId")
    operation = operation or getattr(error, "operation_name", None)

    kwargs = {
        "code": code,
        "status_code": status_code,
        "request_id": request_id,
        "operation": operation,
    }

    if _is_not_found(code) or status_code == 404:
        return NotFoundError(message, **kwargs)
    if code in NOT_AUTHORIZED_CODES or code.startswith("AccessDenied") or status_code in (401, 403):
        return NotAuthorizedError(message, **kwargs)
    if code.startswith("Throttling") or code in THROTTLED_CODES or status_code == 429:
        return ThrottledError(message, **kwargs)
    if code in CONFLICT_CODES or status_code == 409:
        return ConflictError(message, **kwargs)
    if status_code is not None and status_code >= 500:
        return ServiceUnavailableError(message, **kwargs)
    if status_code == 400 or code.startswith("Invalid") or code.endswith("ValidationException") or code in (
        "ValidationError",
        "MissingParameter",
        "InvalidParameterValue",
        "InvalidParameterCombination",
    ):
        return BadRequestError(message, **kwargs)
    return ProviderError(message, **kwargs)
