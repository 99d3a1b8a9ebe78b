# walrus/domain/common/events.py
from __future__ import annotations

"""
Common event builders and helpers.
Events are defined in walrus/transport/protocols.py as OutgoingEvent types.
This file provides helper functions to create error events consistently.
"""

from walrus.transport.protocols import OutError


def not_found(code: str, message: str) -> OutError:
    return OutError(code=code, kind="not_found", message=message)


def invalid(code: str, message: str) -> OutError:
    return OutError(code=code, kind="validation", message=message)


def forbidden(code: str, message: str) -> OutError:
    return OutError(code=code, kind="authorization", message=message)


def conflict(code: str, message: str) -> OutError:
    return OutError(code=code, kind="conflict", message=message)


def exhausted(code: str, message: str) -> OutError:
    return OutError(code=code, kind="resource_exhausted", message=message)


def room_not_found(room_code: str) -> OutError:
    return not_found("ROOM_NOT_FOUND", f"Room {room_code} not found")


def player_not_found(name: str) -> OutError:
    return not_found("PLAYER_NOT_FOUND", f"Player {name} not found")


def bad_phase(phase: str, action: str) -> OutError:
    return conflict("BAD_PHASE", f"Cannot {action} in phase {phase}")
