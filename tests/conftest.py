import paho.mqtt.client as mqtt
import pytest

from qos_sweep.errors import BusError
from qos_sweep.mqtt.bus import BusClient

# Inbound marker: the connection drops, the consumer sees None
DROP = object()


class FakeBus(BusClient):
    """In-memory broker session; records every call the harness makes."""

    def __init__(self, inbound=(), reconnect_results=(), fail_publish_at=None,
                 fail_unsubscribe=False):
        self.inbound = list(inbound)
        self.reconnect_results = list(reconnect_results)
        self.fail_publish_at = fail_publish_at
        self.fail_unsubscribe = fail_unsubscribe
        self.connected = True
        self.calls = []
        self.published = []
        self.reconnect_attempts = 0

    def connect(self):
        self.connected = True

    def disconnect(self):
        self.calls.append(("disconnect",))
        self.connected = False

    def publish(self, topic, payload, qos):
        if self.fail_publish_at is not None and len(self.published) >= self.fail_publish_at:
            raise BusError(f"publish on {topic} failed")
        self.published.append((topic, payload, qos))

    def subscribe(self, topic, qos):
        self.calls.append(("subscribe", topic, qos))

    def unsubscribe(self, topic):
        self.calls.append(("unsubscribe", topic))
        if self.fail_unsubscribe:
            raise BusError(f"failed to unsubscribe from topic {topic}")

    def messages(self):
        for item in self.inbound:
            if item is DROP:
                self.connected = False
                yield None
            elif callable(item):
                item(self)
            else:
                yield item

    def is_connected(self):
        return self.connected

    def reconnect(self):
        self.reconnect_attempts += 1
        ok = self.reconnect_results.pop(0) if self.reconnect_results else False
        if not ok:
            raise BusError("broker unreachable")
        self.connected = True

    def subscriptions(self):
        return [c for c in self.calls if c[0] == "subscribe"]


class StubInfo:
    """Stands in for paho's MQTTMessageInfo."""

    def __init__(self, rc=mqtt.MQTT_ERR_SUCCESS, published=True, error=None):
        self.rc = rc
        self.published = published
        self.error = error
        self.timeout = None

    def wait_for_publish(self, timeout=None):
        self.timeout = timeout
        if self.error is not None:
            raise self.error

    def is_published(self):
        return self.published


class StubPaho:
    """Stands in for paho's Client; records the calls PahoBusClient makes."""

    def __init__(self, on_loop_start=None, info=None):
        self.on_loop_start = on_loop_start
        self.info = info or StubInfo()
        self.connected = True
        self.calls = []

    def username_pw_set(self, username, password):
        self.calls.append("username_pw_set")

    def will_set(self, topic, payload, qos=0):
        self.calls.append("will_set")

    def connect(self, host, port, keepalive):
        self.calls.append("connect")
        return mqtt.MQTT_ERR_SUCCESS

    def reconnect(self):
        self.calls.append("reconnect")
        return mqtt.MQTT_ERR_SUCCESS

    def loop_start(self):
        self.calls.append("loop_start")
        if self.on_loop_start is not None:
            self.on_loop_start()
        return mqtt.MQTT_ERR_SUCCESS

    def loop_stop(self):
        self.calls.append("loop_stop")
        return mqtt.MQTT_ERR_SUCCESS

    def disconnect(self):
        self.calls.append("disconnect")
        return mqtt.MQTT_ERR_SUCCESS

    def is_connected(self):
        return self.connected

    def publish(self, topic, payload, qos=0):
        self.calls.append(("publish", topic, payload, qos))
        return self.info


class FakeClock:
    def __init__(self, now=0):
        self.now = now

    def __call__(self):
        return self.now


class SleepRecorder:
    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def bus():
    return FakeBus()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeper():
    return SleepRecorder()
