# src/qos_sweep/config.py
# Broker connection defaults, topic names and sweep axes

import logging
from dataclasses import dataclass

DEFAULT_BROKER = "localhost"
DEFAULT_PORT = 1883
DEFAULT_USERNAME = "username"
DEFAULT_PASSWORD = "password"
DEFAULT_KEEPALIVE = 20

# Client identities
PUB_CLIENT = "publisher"
CTRL_CLIENT = "control"
ANALYSER_CLIENT = "analyser"

# Topics
PUB_TOPIC = "counter"
QOS_REQUEST_TOPIC = "request/qos"
DELAY_REQUEST_TOPIC = "request/delay"
CTRL_TOPICS = (QOS_REQUEST_TOPIC, DELAY_REQUEST_TOPIC)
CTRL_QOS = 1
STATUS_TOPIC = "$SYS/#"
STATUS_PREFIX = "$SYS/"
STATUS_QOS = 1
LWT_TOPIC = "lostconn"
LWT_PAYLOAD = "Consumer lost connection"

# Sweep axes (guarantee levels come from DeliveryGuarantee)
DELAYS_MS = (0, 1, 2, 10, 20, 100, 200)

# Measurement window
WINDOW_MS = 10000
WINDOW_TOLERANCE_MS = 1000
SETTLE_MS = 1000
DRAIN_PAUSE_S = 1.0

# Reconnect policy
RECONNECT_ATTEMPTS = 12
RELAY_RECONNECT_SPACING_S = 5.0
ANALYSER_RECONNECT_SPACING_S = 2.5

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class BrokerConfig:
    host: str = DEFAULT_BROKER
    port: int = DEFAULT_PORT
    username: str = DEFAULT_USERNAME
    password: str = DEFAULT_PASSWORD
    keepalive: int = DEFAULT_KEEPALIVE

    @property
    def address(self):
        return f"{self.host}:{self.port}"


def add_broker_arguments(parser):
    """Register the broker flags shared by every role's command line."""
    parser.add_argument("--broker", default=DEFAULT_BROKER, help="MQTT broker host")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--username", default=DEFAULT_USERNAME)
    parser.add_argument("--password", default=DEFAULT_PASSWORD)
    parser.add_argument("--keepalive", type=int, default=DEFAULT_KEEPALIVE,
                        help="Keep-alive interval in seconds")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])


def broker_config_from_args(args):
    return BrokerConfig(
        host=args.broker,
        port=args.port,
        username=args.username,
        password=args.password,
        keepalive=args.keepalive,
    )


def configure_logging(level="INFO"):
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT)
