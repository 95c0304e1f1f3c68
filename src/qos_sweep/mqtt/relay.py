# src/qos_sweep/mqtt/relay.py
# Control client: forwards request/qos and request/delay to the publisher thread

import argparse
import logging
import queue
import signal
import sys

from ..config import (
    CTRL_CLIENT,
    CTRL_QOS,
    CTRL_TOPICS,
    LWT_PAYLOAD,
    LWT_TOPIC,
    PUB_CLIENT,
    RECONNECT_ATTEMPTS,
    RELAY_RECONNECT_SPACING_S,
    add_broker_arguments,
    broker_config_from_args,
    configure_logging,
)
from ..controller.control import KILL, decode_control
from ..errors import BusError
from .bus import LastWill, PahoBusClient, Reconnector
from .publisher import Producer, start_producer

logger = logging.getLogger(__name__)


class Relay:
    """
    Listens on the control topics and hands decoded requests to the Producer.

    Unrecognised values are logged and dropped. When the inbound stream ends,
    or reconnecting gives up, the Producer is sent KILL.
    """

    def __init__(self, bus, channel, reconnector=None):
        self.bus = bus
        self.channel = channel
        self.reconnector = reconnector or Reconnector(
            bus, RELAY_RECONNECT_SPACING_S, RECONNECT_ATTEMPTS, name=CTRL_CLIENT
        )

    def subscribe_topics(self):
        for topic in CTRL_TOPICS:
            self.bus.subscribe(topic, CTRL_QOS)
        logger.info("subscribed to %s", ", ".join(CTRL_TOPICS))

    def run(self):
        self.subscribe_topics()
        logger.info("listening for requests...")
        try:
            for msg in self.bus.messages():
                if msg is not None:
                    self.handle(msg.topic, msg.text)
                elif not self.bus.is_connected():
                    if not self.reconnector.run():
                        break
                    logger.info("resubscribe topics...")
                    self.subscribe_topics()
        finally:
            self.channel.put(KILL)

    def handle(self, topic, payload):
        logger.info("received message %r on topic %r", payload, topic)
        request = decode_control(topic, payload)
        if request is None:
            logger.warning("ignoring unrecognised value %r on %s", payload, topic)
            return None
        self.channel.put(request)
        return request

    def close(self):
        logger.info("disconnecting from broker")
        try:
            if self.bus.is_connected():
                for topic in CTRL_TOPICS:
                    try:
                        self.bus.unsubscribe(topic)
                    except BusError as e:
                        logger.warning("%s", e)
        finally:
            self.bus.disconnect()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Publisher and control relay")
    add_broker_arguments(parser)
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    config = broker_config_from_args(args)

    channel = queue.Queue()
    pub_bus = PahoBusClient(PUB_CLIENT, config, clean_session=True)
    ctrl_bus = PahoBusClient(
        CTRL_CLIENT, config, clean_session=False, will=LastWill(LWT_TOPIC, LWT_PAYLOAD)
    )

    try:
        pub_bus.connect()
        ctrl_bus.connect()
    except BusError as e:
        logger.error("%s", e)
        return 1

    producer = Producer(pub_bus, channel)
    producer_thread = start_producer(producer)
    relay = Relay(ctrl_bus, channel)

    signal.signal(signal.SIGINT, lambda signum, frame: ctrl_bus.stop_consuming())
    signal.signal(signal.SIGTERM, lambda signum, frame: ctrl_bus.stop_consuming())

    try:
        relay.run()
    finally:
        producer_thread.join(timeout=5.0)
        relay.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
