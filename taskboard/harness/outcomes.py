import enum

import grpc

from taskboard.errors import ErrorCode


class Outcome(enum.Enum):
    SUCCESS = "Success"
    NO_CONTENT = "NoContent"
    INVALID_ARGUMENT = ErrorCode.INVALID_ARGUMENT.label
    UNAUTHENTICATED = ErrorCode.UNAUTHENTICATED.label
    NOT_FOUND = ErrorCode.NOT_FOUND.label
    ALREADY_EXISTS = ErrorCode.ALREADY_EXISTS.label
    INTERNAL = ErrorCode.INTERNAL.label
    UNMAPPED = "Unmapped"

    @property
    def ok(self) -> bool:
        return self in (Outcome.SUCCESS, Outcome.NO_CONTENT)


# Business outcome per transport status, derived from the shared error table
HTTP_OUTCOMES = {
    200: Outcome.SUCCESS,
    201: Outcome.SUCCESS,
    204: Outcome.NO_CONTENT,
    **{code.http_status.value: Outcome(code.label) for code in ErrorCode},
}

RPC_OUTCOMES = {
    grpc.StatusCode.OK: Outcome.SUCCESS,
    **{code.grpc_status: Outcome(code.label) for code in ErrorCode},
}


def outcome_for_http(status_code: int) -> Outcome:
    return HTTP_OUTCOMES.get(status_code, Outcome.UNMAPPED)


def outcome_for_rpc(code: grpc.StatusCode, payload_empty: bool = False) -> Outcome:
    """RPC has no 204: an OK call whose payload is empty after unwrapping is the no-content case."""
    outcome = RPC_OUTCOMES.get(code, Outcome.UNMAPPED)
    if outcome is Outcome.SUCCESS and payload_empty:
        return Outcome.NO_CONTENT
    return outcome
