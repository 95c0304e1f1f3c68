import pytest

from qos_sweep.controller.control import DelayChange, GuaranteeChange, decode_control
from qos_sweep.controller.matrix import DeliveryGuarantee
from qos_sweep.errors import UnexpectedTopicError


@pytest.mark.parametrize("payload", ["0", "1", "2"])
def test_decode_guarantee(payload):
    assert decode_control("request/qos", payload) == GuaranteeChange(DeliveryGuarantee(int(payload)))


@pytest.mark.parametrize("delay", [0, 1, 2, 10, 20, 100, 200])
def test_decode_delay(delay):
    assert decode_control("request/delay", str(delay)) == DelayChange(delay)


@pytest.mark.parametrize("topic,payload", [
    ("request/qos", "3"),
    ("request/qos", "one"),
    ("request/qos", ""),
    ("request/delay", "5"),
    ("request/delay", " 10"),
    ("request/delay", "-1"),
])
def test_unrecognised_values_are_ignored(topic, payload):
    assert decode_control(topic, payload) is None


def test_unknown_topic_is_fatal():
    with pytest.raises(UnexpectedTopicError) as excinfo:
        decode_control("request/rate", "1")
    assert excinfo.value.topic == "request/rate"


def test_encode():
    assert GuaranteeChange(DeliveryGuarantee.EXACTLY_ONCE).encode() == ("request/qos", "2")
    assert DelayChange(100).encode() == ("request/delay", "100")
