"""Error taxonomy and normalization for rijksmuseum_mcp.

Every failure a tool call raises is funneled through :func:`normalize_error`
into a single :class:`ErrorEnvelope`.
"""

from enum import Enum

from mcp.shared.exceptions import McpError
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, INVALID_REQUEST, METHOD_NOT_FOUND, ErrorData
from pydantic import BaseModel, Field


class ErrorKind(str, Enum):
    """Closed set of error kinds reported to callers."""

    INVALID_ARGUMENT = "invalid_argument"
    MISSING_REQUIRED_PARAMETER = "missing_required_parameter"
    UNKNOWN_OPERATION = "unknown_operation"
    UPSTREAM_NETWORK_FAILURE = "upstream_network_failure"
    UPSTREAM_PROTOCOL_FAILURE = "upstream_protocol_failure"
    UPSTREAM_CONTRACT_VIOLATION = "upstream_contract_violation"
    LOCAL_SIDE_EFFECT_FAILURE = "local_side_effect_failure"
    INTERNAL_ERROR = "internal_error"


# Client-fault kinds map to request-level codes, everything else is internal.
ERROR_CODES: dict[ErrorKind, int] = {
    ErrorKind.INVALID_ARGUMENT: INVALID_PARAMS,
    ErrorKind.MISSING_REQUIRED_PARAMETER: INVALID_PARAMS,
    ErrorKind.UNKNOWN_OPERATION: METHOD_NOT_FOUND,
    ErrorKind.UPSTREAM_NETWORK_FAILURE: INTERNAL_ERROR,
    ErrorKind.UPSTREAM_PROTOCOL_FAILURE: INTERNAL_ERROR,
    ErrorKind.UPSTREAM_CONTRACT_VIOLATION: INTERNAL_ERROR,
    ErrorKind.LOCAL_SIDE_EFFECT_FAILURE: INTERNAL_ERROR,
    ErrorKind.INTERNAL_ERROR: INTERNAL_ERROR,
}


class ErrorEnvelope(BaseModel):
    """Uniform error shape derived from exactly one failure cause."""

    kind: ErrorKind = Field(..., description="Error kind")
    message: str = Field(..., description="Human-readable error message")

    model_config = {"frozen": True}

    @property
    def code(self) -> int:
        """JSON-RPC error code for this envelope."""
        return ERROR_CODES[self.kind]


class RijksmuseumError(Exception):
    """Base exception carrying an :class:`ErrorKind`."""

    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnknownToolError(RijksmuseumError):
    """Raised when a tool name is not in the catalog."""

    kind = ErrorKind.UNKNOWN_OPERATION

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class PaginationLimitError(RijksmuseumError):
    """Raised when ``page * pageSize`` exceeds the API's result window."""

    kind = ErrorKind.INVALID_ARGUMENT


def _kind_for_code(code: int) -> ErrorKind:
    if code == METHOD_NOT_FOUND:
        return ErrorKind.UNKNOWN_OPERATION
    if code in (INVALID_PARAMS, INVALID_REQUEST):
        return ErrorKind.INVALID_ARGUMENT
    return ErrorKind.INTERNAL_ERROR


def normalize_error(error: BaseException) -> ErrorEnvelope:
    """Convert any failure into an :class:`ErrorEnvelope`.

    Args:
        error: The exception raised while handling a request.

    Returns:
        Envelope with the error kind and message.
    """
    if isinstance(error, RijksmuseumError):
        return ErrorEnvelope(kind=error.kind, message=error.message)
    if isinstance(error, McpError):
        return ErrorEnvelope(kind=_kind_for_code(error.error.code), message=error.error.message)
    return ErrorEnvelope(kind=ErrorKind.INTERNAL_ERROR, message=f"Internal error: {error}")


def to_mcp_error(envelope: ErrorEnvelope) -> McpError:
    """Build the protocol-level error raised back to the MCP caller.

    Args:
        envelope: The normalized error.

    Returns:
        McpError whose data carries the error kind.
    """
    return McpError(
        ErrorData(
            code=envelope.code,
            message=envelope.message,
            data={"kind": envelope.kind.value},
        )
    )
