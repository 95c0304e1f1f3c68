# src/qos_sweep/controller/sweep.py
# Sweep state machine: window boundaries and matrix advancement

import logging
import time

from ..config import (
    CTRL_QOS,
    DRAIN_PAUSE_S,
    PUB_TOPIC,
    SETTLE_MS,
    WINDOW_MS,
    WINDOW_TOLERANCE_MS,
)
from .control import DelayChange, GuaranteeChange
from .matrix import DeliveryGuarantee, build_matrix, topic_for

logger = logging.getLogger(__name__)


class SweepState:
    """Current matrix index plus the parameters last announced to the Producer."""

    def __init__(self, matrix):
        if not matrix:
            raise ValueError("Sweep matrix must not be empty")
        self.matrix = matrix
        self.index = 0
        # The Producer starts publishing at (0, 0)
        self.announced_guarantee = DeliveryGuarantee.AT_MOST_ONCE
        self.announced_delay = 0

    @property
    def current(self):
        return self.matrix[self.index]

    def advance(self):
        self.index = (self.index + 1) % len(self.matrix)
        return self.current


class SweepController:
    """
    Walks the sweep matrix one measurement window at a time.

    Window boundaries are detected from elapsed run time as messages arrive,
    so window length is approximate. Moving to the next point means dropping
    the old data subscription, taking the new one and asking the Producer
    (through the Relay) for whatever changed.
    """

    def __init__(self, bus, matrix=None, base_topic=PUB_TOPIC,
                 window_ms=WINDOW_MS, tolerance_ms=WINDOW_TOLERANCE_MS,
                 settle_ms=SETTLE_MS, drain_pause_s=DRAIN_PAUSE_S, sleep=time.sleep):
        self.bus = bus
        self.state = SweepState(matrix if matrix is not None else build_matrix())
        self.base_topic = base_topic
        self.window_ms = window_ms
        self.tolerance_ms = tolerance_ms
        self.settle_ms = settle_ms
        self.drain_pause_s = drain_pause_s
        self._sleep = sleep
        self._closed_boundary = None

    @property
    def current_topic(self):
        guarantee, delay = self.state.current
        return topic_for(guarantee, delay, self.base_topic)

    @property
    def current_qos(self):
        return int(self.state.current[0])

    def subscribe_current(self):
        self.bus.subscribe(self.current_topic, self.current_qos)
        logger.info("subscribed to topic %s", self.current_topic)

    def window_complete(self, elapsed_ms):
        """True once per window boundary, after the start-up settle period."""
        if elapsed_ms <= self.settle_ms:
            return False
        if elapsed_ms % self.window_ms >= self.tolerance_ms:
            return False
        boundary = elapsed_ms // self.window_ms
        if boundary == self._closed_boundary:
            return False
        self._closed_boundary = boundary
        return True

    def advance(self):
        """
        Move to the next matrix point.

        Returns the control messages published, in order, so callers can
        log or inspect them.
        """
        if self.drain_pause_s:
            self._sleep(self.drain_pause_s)

        old_topic = self.current_topic
        self.bus.unsubscribe(old_topic)
        logger.info("unsubscribed from topic %s", old_topic)

        guarantee, delay = self.state.advance()
        self.subscribe_current()

        announced = []
        if guarantee != self.state.announced_guarantee:
            announced.append(GuaranteeChange(guarantee))
            self.state.announced_guarantee = guarantee
        if delay != self.state.announced_delay:
            announced.append(DelayChange(delay))
            self.state.announced_delay = delay

        for request in announced:
            topic, payload = request.encode()
            self.bus.publish(topic, payload, CTRL_QOS)
            logger.info("requested %s=%s", topic, payload)

        return announced
