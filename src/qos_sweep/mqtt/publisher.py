# src/qos_sweep/mqtt/publisher.py
# Load generator: publishes a running counter on counter/<qos>/<delay>

import logging
import queue
import threading
import time

from ..config import PUB_TOPIC
from ..controller.control import KILL, DelayChange, GuaranteeChange
from ..controller.matrix import DeliveryGuarantee, topic_for
from ..errors import BusError

logger = logging.getLogger(__name__)


class Producer:
    """
    Publishes 0, 1, 2, ... on the topic for its current (qos, delay).

    Parameters change only through `channel`, which the Relay feeds; the
    channel is polled without blocking once per publish. Changes are not
    acknowledged on the bus, they only show up as a new data topic.
    """

    def __init__(self, bus, channel, base_topic=PUB_TOPIC, sleep=time.sleep):
        self.bus = bus
        self.channel = channel
        self.base_topic = base_topic
        self._sleep = sleep

        self.guarantee = DeliveryGuarantee.AT_MOST_ONCE
        self.delay_ms = 0
        self.counter = 0
        self.topic = topic_for(self.guarantee, self.delay_ms, base_topic)

        self.running = False
        self.error = None

    def run(self):
        self.running = True
        logger.info("publishing messages on %s", self.topic)
        try:
            while self.running:
                self._publish_next()
                if self.delay_ms:
                    self._sleep(self.delay_ms / 1000)
                self._poll()
        except BusError as e:
            self.error = e
            logger.error("error sending message %d: %s", self.counter, e)
        finally:
            self.running = False
            if self.bus.is_connected():
                logger.info("disconnecting from broker")
                self.bus.disconnect()

    def _publish_next(self):
        self.bus.publish(self.topic, str(self.counter), int(self.guarantee))
        self.counter += 1

    def _poll(self):
        try:
            request = self.channel.get_nowait()
        except queue.Empty:
            return

        if request is KILL:
            self.running = False
        elif isinstance(request, GuaranteeChange):
            self.apply(guarantee=request.level)
        elif isinstance(request, DelayChange):
            self.apply(delay_ms=request.delay_ms)

    def apply(self, guarantee=None, delay_ms=None):
        if guarantee is not None:
            self.guarantee = DeliveryGuarantee(guarantee)
        if delay_ms is not None:
            self.delay_ms = delay_ms
        self.topic = topic_for(self.guarantee, self.delay_ms, self.base_topic)
        logger.info("publishing messages on %s", self.topic)


def start_producer(producer):
    thread = threading.Thread(target=producer.run, name="publisher", daemon=True)
    thread.start()
    return thread
