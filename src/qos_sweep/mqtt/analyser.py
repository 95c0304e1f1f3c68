# src/qos_sweep/mqtt/analyser.py
# Analyser: measures each (qos, delay) point for one window, then moves on

import argparse
import logging
import signal
import sys
import time

from ..analysis.results import ResultsWriter
from ..analysis.status import BrokerStatusGate, is_status_topic
from ..analysis.window import MeasurementWindow, compute_stats
from ..config import (
    ANALYSER_CLIENT,
    ANALYSER_RECONNECT_SPACING_S,
    LWT_PAYLOAD,
    LWT_TOPIC,
    RECONNECT_ATTEMPTS,
    STATUS_QOS,
    STATUS_TOPIC,
    WINDOW_MS,
    add_broker_arguments,
    broker_config_from_args,
    configure_logging,
)
from ..controller.sweep import SweepController
from ..errors import BusError, MalformedPayloadError, UnexpectedTopicError
from .bus import LastWill, PahoBusClient, Reconnector

logger = logging.getLogger(__name__)


def monotonic_ms():
    return int(time.monotonic() * 1000)


class Analyser:
    """
    Single consume loop over the current data topic and $SYS/#.

    Every data message is recorded in the current window. When a window
    boundary passes, the window's statistics are logged and the sweep
    controller moves both this subscription and the Producer on.
    """

    def __init__(self, bus, controller=None, results=None, clock=monotonic_ms,
                 reconnector=None, window_ms=WINDOW_MS):
        self.bus = bus
        self.controller = controller or SweepController(bus, window_ms=window_ms)
        self.results = results
        self.window_ms = window_ms
        self._clock = clock
        self.reconnector = reconnector or Reconnector(
            bus, ANALYSER_RECONNECT_SPACING_S, RECONNECT_ATTEMPTS, name=ANALYSER_CLIENT
        )

        self.window = MeasurementWindow()
        self.status = BrokerStatusGate()
        self.history = []
        self._start_ms = None

    def elapsed_ms(self):
        return self._clock() - self._start_ms

    def subscribe_topics(self):
        self.controller.subscribe_current()
        self.bus.subscribe(STATUS_TOPIC, STATUS_QOS)
        logger.info("subscribed to topic %s", STATUS_TOPIC)

    def start(self):
        self.subscribe_topics()
        self._start_ms = self._clock()
        self.window.mark(0)
        logger.info("collecting requests...")
        logger.info("awaiting $SYS response")

    def run(self):
        self.start()
        for msg in self.bus.messages():
            if msg is not None:
                self.handle(msg.topic, msg.text)
            elif not self.bus.is_connected():
                if not self.reconnector.run():
                    break
                logger.info("resubscribe topics...")
                self.subscribe_topics()

    def handle(self, topic, payload):
        now = self.elapsed_ms()

        if is_status_topic(topic):
            self.status.observe(topic, payload)
            self.window.mark(now)
            return

        if not topic.startswith(self.controller.base_topic + "/"):
            raise UnexpectedTopicError(topic)
        try:
            seq = int(payload)
        except ValueError:
            raise MalformedPayloadError(topic, payload) from None

        self.window.record(seq, now)

        if self.controller.window_complete(now):
            self.close_window()

    def close_window(self):
        guarantee, delay = self.controller.state.current
        stats = compute_stats(self.window.sequence, self.window.gaps,
                              window_seconds=self.window_ms / 1000)
        self.history.append(((guarantee, delay), stats))
        log_stats(self.controller.current_topic, stats)
        if self.results is not None:
            self.results.write(guarantee, delay, stats)

        self.controller.advance()

        self.status.reset()
        self.window.reset()
        return stats

    def close(self):
        logger.info("disconnecting...")
        try:
            if self.bus.is_connected():
                for topic in (STATUS_TOPIC, self.controller.current_topic):
                    try:
                        self.bus.unsubscribe(topic)
                        logger.info("unsubscribed from topic %s", topic)
                    except BusError as e:
                        logger.warning("%s", e)
        finally:
            self.bus.disconnect()


def log_stats(topic, stats):
    if stats is None:
        logger.info("%s: no data received in this window", topic)
        return
    logger.info("actual: %d expected: %d", stats.received, stats.expected)
    logger.info("Message rate: %s per second", stats.message_rate)
    if stats.loss_rate is None:
        logger.info("Loss rate: undefined (single sequence value)")
    else:
        logger.info("Loss rate: %s", stats.loss_rate)
    logger.info("Out-of-order rate: %s", stats.out_of_order_rate)
    logger.info("Inter-message mean: %s milliseconds", stats.delay_mean)
    logger.info("Inter-message median: %s milliseconds", stats.delay_median)


def main(argv=None):
    parser = argparse.ArgumentParser(description="QoS / delay sweep analyser")
    add_broker_arguments(parser)
    parser.add_argument("--window", type=float, default=WINDOW_MS / 1000,
                        help="Measurement window length in seconds")
    parser.add_argument("--results", default=None, help="CSV file for per-window results")
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    config = broker_config_from_args(args)

    bus = PahoBusClient(
        ANALYSER_CLIENT, config, clean_session=False, will=LastWill(LWT_TOPIC, LWT_PAYLOAD)
    )
    try:
        bus.connect()
    except BusError as e:
        logger.error("%s", e)
        return 1

    results = ResultsWriter(args.results) if args.results else None
    window_ms = int(args.window * 1000)
    analyser = Analyser(bus, SweepController(bus, window_ms=window_ms),
                        results=results, window_ms=window_ms)

    signal.signal(signal.SIGINT, lambda signum, frame: bus.stop_consuming())
    signal.signal(signal.SIGTERM, lambda signum, frame: bus.stop_consuming())

    try:
        analyser.run()
    finally:
        analyser.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
