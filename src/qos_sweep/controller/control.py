# src/qos_sweep/controller/control.py
# Parameter-change requests: Analyser -> bus -> Relay -> Producer

from dataclasses import dataclass

from ..config import DELAYS_MS, DELAY_REQUEST_TOPIC, QOS_REQUEST_TOPIC
from ..errors import UnexpectedTopicError
from .matrix import DeliveryGuarantee


@dataclass(frozen=True)
class GuaranteeChange:
    level: DeliveryGuarantee

    def encode(self):
        return QOS_REQUEST_TOPIC, str(int(self.level))


@dataclass(frozen=True)
class DelayChange:
    delay_ms: int

    def encode(self):
        return DELAY_REQUEST_TOPIC, str(self.delay_ms)


class _Kill:
    """In-process stop signal for the Producer; never sent on the bus."""

    def __repr__(self):
        return "KILL"


KILL = _Kill()

_GUARANTEE_VALUES = {str(int(g)): g for g in DeliveryGuarantee}
_DELAY_VALUES = {str(d): d for d in DELAYS_MS}


def decode_control(topic, payload):
    """
    Map a control-topic message to a GuaranteeChange or DelayChange.

    Unrecognised values on a known topic return None and are meant to be
    ignored. Any other topic raises UnexpectedTopicError.
    """
    if topic == QOS_REQUEST_TOPIC:
        level = _GUARANTEE_VALUES.get(payload)
        return None if level is None else GuaranteeChange(level)
    if topic == DELAY_REQUEST_TOPIC:
        delay = _DELAY_VALUES.get(payload)
        return None if delay is None else DelayChange(delay)
    raise UnexpectedTopicError(topic)
