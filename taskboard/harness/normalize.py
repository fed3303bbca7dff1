"""Projection of transport-native responses into one comparable record.

Both transports describe the same entities with different wire shapes: the
RPC side wraps payloads in envelopes (``{user, status}``), names fields in
snake_case and, following the protobuf JSON mapping, renders 64-bit
integers as decimal strings. Everything that bridges those differences is a
table in this module; no call site knows about field names.
"""
from dataclasses import dataclass, field
from typing import Any

import grpc
from google.protobuf import json_format

from taskboard.harness.outcomes import Outcome, outcome_for_http, outcome_for_rpc
from taskboard.utils.timestamps import format_timestamp, parse_timestamp

# RPC field name -> REST field name
FIELD_RENAMES = {
    "user_id": "userId",
    "task_id": "taskId",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}

INTEGER_FIELDS = {"id", "userId", "taskId", "page", "limit", "total"}
TIMESTAMP_FIELDS = {"createdAt", "updatedAt"}


@dataclass(frozen=True)
class Envelope:
    unwrap: str | None = None
    drop: tuple[str, ...] = ()

    def open(self, payload):
        if not isinstance(payload, dict):
            return payload
        if self.unwrap is not None:
            return payload.get(self.unwrap)
        return {k: v for k, v in payload.items() if k not in self.drop}


# Keyed by logical operation; applied to raw RPC field names
RPC_ENVELOPES = {
    "create_user": Envelope(unwrap="user"),
    "login": Envelope(drop=("status",)),
    "logout": Envelope(),
    "list_users": Envelope(unwrap="users"),
    "get_user": Envelope(unwrap="user"),
    "update_user": Envelope(unwrap="user"),
    "delete_user": Envelope(drop=("status",)),
    "create_task": Envelope(drop=("status_info",)),
    "list_tasks": Envelope(drop=("status",)),
    "get_task": Envelope(unwrap="task"),
    "update_task": Envelope(unwrap="task"),
    "delete_task": Envelope(drop=("status",)),
}

REST_ENVELOPES: dict[str, Envelope] = {}


@dataclass
class NormalizedResponse:
    transport: str
    outcome: Outcome
    status: str
    record: Any = field(default_factory=dict)
    message: str | None = None


@dataclass
class RestRaw:
    status_code: int
    body: Any


@dataclass
class RpcRaw:
    code: grpc.StatusCode
    message: Any = None
    details: str | None = None


def project_message(message) -> dict:
    """Protobuf message -> plain dict, keeping presence: unset fields become ``None``.

    ``MessageToDict`` already renders 64-bit integers as decimal strings and
    omits fields that were never set; repeated fields are always printed.
    """
    record = json_format.MessageToDict(
        message,
        preserving_proto_field_name=True,
        always_print_fields_with_no_presence=True,
    )
    return _fill_absent(message.DESCRIPTOR, record)


def _fill_absent(descriptor, record: dict) -> dict:
    for fd in descriptor.fields:
        value = record.setdefault(fd.name, None)
        if fd.message_type is None or value is None:
            continue
        for item in value if isinstance(value, list) else [value]:
            _fill_absent(fd.message_type, item)
    return record


def _coerce(key: str, value):
    if key in INTEGER_FIELDS and isinstance(value, str):
        digits = value.lstrip("-")
        if digits.isascii() and digits.isdigit():
            return int(value)
    if key in TIMESTAMP_FIELDS and isinstance(value, str) and value:
        try:
            return format_timestamp(parse_timestamp(value))
        except ValueError:
            return value
    return value


def canonicalize(value):
    """Apply the rename and coercion tables recursively."""
    if isinstance(value, dict):
        out = {}
        for key, item in value.items():
            key = FIELD_RENAMES.get(key, key)
            out[key] = _coerce(key, canonicalize(item))
        return out
    if isinstance(value, list):
        return [canonicalize(item) for item in value]
    return value


def normalize_rest(operation: str, raw: RestRaw) -> NormalizedResponse:
    outcome = outcome_for_http(raw.status_code)
    if not outcome.ok:
        message = raw.body.get("message") if isinstance(raw.body, dict) else None
        return NormalizedResponse("REST", outcome, str(raw.status_code), {}, message)

    payload = raw.body if raw.body is not None else {}
    record = canonicalize(REST_ENVELOPES.get(operation, Envelope()).open(payload))
    return NormalizedResponse("REST", outcome, str(raw.status_code), record)


def normalize_rpc(operation: str, raw: RpcRaw) -> NormalizedResponse:
    if raw.code != grpc.StatusCode.OK:
        outcome = outcome_for_rpc(raw.code)
        return NormalizedResponse("RPC", outcome, raw.code.name, {}, raw.details)

    payload = project_message(raw.message) if raw.message is not None else {}
    record = canonicalize(RPC_ENVELOPES.get(operation, Envelope()).open(payload))
    outcome = outcome_for_rpc(raw.code, payload_empty=record == {})
    return NormalizedResponse("RPC", outcome, raw.code.name, record)
