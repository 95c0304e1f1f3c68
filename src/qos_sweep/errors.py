# src/qos_sweep/errors.py


class SweepError(Exception):
    """Base class for harness errors."""


class BusError(SweepError):
    """A connect, publish or subscribe call on the broker failed."""


class UnexpectedTopicError(SweepError):
    """A message arrived on a topic the receiving role never subscribed to."""

    def __init__(self, topic):
        super().__init__(f"Unexpected topic {topic!r}")
        self.topic = topic


class MalformedPayloadError(SweepError):
    """A data-path payload could not be decoded."""

    def __init__(self, topic, payload):
        super().__init__(f"Malformed payload {payload!r} on topic {topic!r}")
        self.topic = topic
        self.payload = payload
