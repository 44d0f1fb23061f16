from dataclasses import dataclass
from decimal import Decimal
from typing import Union

@dataclass
class Account:
    id: int
    balance: Decimal

# Gateway client results
@dataclass(frozen=True)
class RawResponse:
    status_code: int
    body: str

    @property
    def is_success_status(self) -> bool:
        return 200 <= self.status_code < 300

@dataclass(frozen=True)
class TransportError:
    cause: str

GatewayCallResult = Union[RawResponse, TransportError]

# Outcomes of one gateway attempt
@dataclass(frozen=True)
class Accepted:
    message: str = ""

@dataclass(frozen=True)
class Declined:
    message: str = ""

@dataclass(frozen=True)
class TransientFailure:
    cause: str
    timed_out: bool = False

GatewayOutcome = Union[Accepted, Declined, TransientFailure]

@dataclass(frozen=True)
class Exhausted:
    """No conclusive answer within the attempt budget or the caller's deadline"""
    attempts: int
    cause: str
    cancelled: bool = False

RetryOutcome = Union[Accepted, Declined, Exhausted]
