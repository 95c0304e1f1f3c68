# src/qos_sweep/controller/matrix.py
# Delivery guarantees, the sweep matrix and data-topic derivation

import enum
import itertools

from ..config import DELAYS_MS, PUB_TOPIC


class DeliveryGuarantee(enum.IntEnum):
    AT_MOST_ONCE = 0
    AT_LEAST_ONCE = 1
    EXACTLY_ONCE = 2


def topic_for(guarantee, delay_ms, base=PUB_TOPIC):
    """Canonical data topic "<base>/<guarantee>/<delay>" for one matrix point."""
    level = DeliveryGuarantee(guarantee)  # ValueError when out of range
    if delay_ms not in DELAYS_MS:
        raise ValueError(f"Delay {delay_ms!r} ms is not one of {DELAYS_MS}")
    return f"{base}/{int(level)}/{delay_ms}"


def build_matrix(guarantees=tuple(DeliveryGuarantee), delays=DELAYS_MS):
    """Guarantee-major, delay-minor Cartesian product."""
    return tuple(
        (DeliveryGuarantee(g), d) for g, d in itertools.product(guarantees, delays)
    )
