"""
Structured dispatch results.

Every dispatch returns an Outcome; only SUCCESS is truthy. Failures diagnosable
from the input (permission, sender, arity, choice, serialization) have already
been rendered to the sender when the outcome is returned.
"""
from enum import Enum
from typing import final

from .utils import *


class Status(Enum):
    """
    closed set of dispatch statuses.
    """
    SUCCESS = "success"
    REJECTED = "rejected"
    HELP = "help"
    UNKNOWN_COMMAND = "unknown-command"
    NO_PERMISSION = "no-permission"
    INVALID_SENDER = "invalid-sender"
    ARGUMENT_COUNT_MISMATCH = "argument-count-mismatch"
    UNKNOWN_CHOICE = "unknown-choice"
    SERIALIZATION_FAILURE = "serialization-failure"


@final
class Outcome(metaclass=Introspective):
    """
    Result of one dispatch.

    Fields
    - status: Status of the dispatch.
    - route: labels from the root command down to the node that settled it.
    - messages: lines sent to the sender while dispatching (help, errors).
    """
    __introspectable__ = (
        "status",
        "route",
        "messages",
    )

    def __init__(self, status, route=(), messages=(), /):
        if not isinstance(status, Status):
            raise TypeError(f"{Outcome.__typename__} 'status' must be a status")
        self._status = status
        self._route = tuple(route)
        self._messages = tuple(messages)

    def __bool__(self):
        return self._status is Status.SUCCESS

    def __eq__(self, other):
        if not isinstance(other, Outcome):
            return NotImplemented
        return (self._status, self._route, self._messages) == (other._status, other._route, other._messages)

    def __hash__(self):
        return hash((self._status, self._route, self._messages))


__all__ = (
    "Status",
    "Outcome",
)
