from .control import KILL, DelayChange, GuaranteeChange, decode_control
from .matrix import DeliveryGuarantee, build_matrix, topic_for
from .sweep import SweepController, SweepState

__all__ = [
    "KILL",
    "DelayChange",
    "GuaranteeChange",
    "decode_control",
    "DeliveryGuarantee",
    "build_matrix",
    "topic_for",
    "SweepController",
    "SweepState",
]
