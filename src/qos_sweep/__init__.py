"""MQTT broker benchmark: QoS / publish-delay sweep with loss and latency stats."""

__version__ = "0.1.0"
