# src/qos_sweep/mqtt/bus.py
# Broker session used by every role: a paho client feeding a message queue,
# plus the bounded reconnect state machine.

import abc
import enum
import logging
import queue
import threading
import time
from dataclasses import dataclass

import paho.mqtt.client as mqtt
from paho.mqtt.client import CallbackAPIVersion

from ..config import RECONNECT_ATTEMPTS
from ..errors import BusError

logger = logging.getLogger(__name__)

_CLOSED = object()


@dataclass(frozen=True)
class BusMessage:
    topic: str
    payload: bytes

    @property
    def text(self):
        return self.payload.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class LastWill:
    topic: str
    payload: str
    qos: int = 0


class BusClient(abc.ABC):
    """
    What the harness needs from a broker session.

    messages() yields BusMessage objects, or None whenever the connection
    state changed (the consumer then checks is_connected()). The iterator
    ends once the stream is closed.
    """

    @abc.abstractmethod
    def connect(self): ...

    @abc.abstractmethod
    def disconnect(self): ...

    @abc.abstractmethod
    def publish(self, topic, payload, qos): ...

    @abc.abstractmethod
    def subscribe(self, topic, qos): ...

    @abc.abstractmethod
    def unsubscribe(self, topic): ...

    @abc.abstractmethod
    def messages(self): ...

    @abc.abstractmethod
    def is_connected(self): ...

    @abc.abstractmethod
    def reconnect(self): ...


class PahoBusClient(BusClient):
    """
    paho-mqtt session feeding a message queue.

    paho runs its network thread via loop_start() with reconnect_on_failure
    disabled, so the thread ends when the connection drops. Reconnection is
    driven explicitly by Reconnector so attempts stay bounded. publish()
    blocks until paho reports the message sent (qos 0) or acknowledged.
    """

    def __init__(self, client_id, config, clean_session=True, will=None,
                 connect_timeout=10.0, publish_timeout=10.0):
        self.client_id = client_id
        self.config = config
        self.will = will
        self.connect_timeout = connect_timeout
        self.publish_timeout = publish_timeout

        self._inbox = queue.Queue()
        self._connected = threading.Event()
        self._stopping = threading.Event()
        self._connect_error = None

        self.client = mqtt.Client(
            callback_api_version=CallbackAPIVersion.VERSION2,
            client_id=client_id,
            clean_session=clean_session,
            reconnect_on_failure=False,
        )
        self.client.on_connect = self._on_connect
        self.client.on_disconnect = self._on_disconnect
        self.client.on_message = self._on_message

    # ---------------------------------------------------
    # paho callbacks (network thread)
    # ---------------------------------------------------
    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code.is_failure:
            self._connect_error = str(reason_code)
            logger.error("%s: connection refused: %s", self.client_id, reason_code)
        else:
            self._connect_error = None
            self._connected.set()
        self._inbox.put(None)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        self._connected.clear()
        if not self._stopping.is_set():
            logger.warning("%s: disconnected from broker (%s)", self.client_id, reason_code)
            self._inbox.put(None)

    def _on_message(self, client, userdata, msg):
        self._inbox.put(BusMessage(msg.topic, bytes(msg.payload)))

    # ---------------------------------------------------
    # Session
    # ---------------------------------------------------
    def connect(self):
        cfg = self.config
        self.client.username_pw_set(cfg.username, cfg.password)
        if self.will is not None:
            self.client.will_set(self.will.topic, self.will.payload, qos=self.will.qos)

        try:
            rc = self.client.connect(cfg.host, cfg.port, cfg.keepalive)
        except OSError as e:
            raise BusError(f"{self.client_id}: unable to connect to {cfg.address}: {e}") from e
        if rc != mqtt.MQTT_ERR_SUCCESS:
            raise BusError(f"{self.client_id}: unable to connect to {cfg.address}: "
                           f"{mqtt.error_string(rc)}")

        self._stopping.clear()
        self.client.loop_start()
        self._wait_connected()
        logger.info("%s: connected to broker on %s", self.client_id, cfg.address)

    def _wait_connected(self):
        if not self._connected.wait(self.connect_timeout):
            reason = self._connect_error or "no CONNACK received"
            raise BusError(f"{self.client_id}: connection not established: {reason}")

    def reconnect(self):
        if self.is_connected():
            return
        # The network thread exits on connection loss; make sure it is gone
        self.client.loop_stop()
        try:
            rc = self.client.reconnect()
        except OSError as e:
            raise BusError(f"{self.client_id}: reconnect failed: {e}") from e
        if rc != mqtt.MQTT_ERR_SUCCESS:
            raise BusError(f"{self.client_id}: reconnect failed: {mqtt.error_string(rc)}")
        self.client.loop_start()
        self._wait_connected()

    def disconnect(self):
        self._stopping.set()
        self.client.disconnect()
        self.client.loop_stop()
        self._connected.clear()

    def is_connected(self):
        return self._connected.is_set() and self.client.is_connected()

    # ---------------------------------------------------
    # Messaging
    # ---------------------------------------------------
    def publish(self, topic, payload, qos):
        info = self.client.publish(topic, payload, qos=int(qos))
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            raise BusError(f"{self.client_id}: error publishing on {topic}: "
                           f"{mqtt.error_string(info.rc)}")
        try:
            info.wait_for_publish(timeout=self.publish_timeout)
        except (ValueError, RuntimeError) as e:
            raise BusError(f"{self.client_id}: error publishing on {topic}: {e}") from e
        if not info.is_published():
            raise BusError(f"{self.client_id}: publish on {topic} not completed "
                           f"within {self.publish_timeout}s")

    def subscribe(self, topic, qos):
        rc, _mid = self.client.subscribe(topic, qos=int(qos))
        if rc != mqtt.MQTT_ERR_SUCCESS:
            raise BusError(f"{self.client_id}: error subscribing to topic {topic}: "
                           f"{mqtt.error_string(rc)}")

    def unsubscribe(self, topic):
        rc, _mid = self.client.unsubscribe(topic)
        if rc != mqtt.MQTT_ERR_SUCCESS:
            raise BusError(f"{self.client_id}: failed to unsubscribe from topic {topic}: "
                           f"{mqtt.error_string(rc)}")

    def messages(self):
        while True:
            item = self._inbox.get()
            if item is _CLOSED:
                return
            yield item

    def stop_consuming(self):
        """End the messages() iterator; safe to call from a signal handler."""
        self._inbox.put(_CLOSED)


# ---------------------------------------------------
# Bounded reconnect
# ---------------------------------------------------
class ConnectionState(enum.Enum):
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    FAILED = "failed"


class Reconnector:
    """
    Connected -> Reconnecting(attempt) -> Connected | Failed.

    Each attempt waits `spacing` seconds first. After `attempts` failures the
    state is FAILED and run() returns False; it never tries again after that.
    """

    def __init__(self, bus, spacing, attempts=RECONNECT_ATTEMPTS, sleep=time.sleep, name="bus"):
        self.bus = bus
        self.spacing = spacing
        self.attempts = attempts
        self.name = name
        self._sleep = sleep
        self.state = ConnectionState.CONNECTED
        self.attempt = 0

    def run(self):
        if self.state is ConnectionState.FAILED:
            return False

        logger.warning("%s: connection lost. Waiting to try again...", self.name)
        self.state = ConnectionState.RECONNECTING
        self.attempt = 0

        while self.state is ConnectionState.RECONNECTING:
            if self.attempt >= self.attempts:
                self.state = ConnectionState.FAILED
                break
            self.attempt += 1
            self._sleep(self.spacing)
            try:
                self.bus.reconnect()
            except BusError as e:
                logger.info("%s: reconnect attempt %d/%d failed: %s",
                            self.name, self.attempt, self.attempts, e)
                continue
            self.state = ConnectionState.CONNECTED

        if self.state is ConnectionState.CONNECTED:
            logger.info("%s: successfully reconnected", self.name)
            return True
        logger.error("%s: unable to reconnect after %d attempts", self.name, self.attempts)
        return False
