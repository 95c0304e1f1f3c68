# src/qos_sweep/analysis/status.py
# Broker self-status ($SYS) readiness signal, reset every window

import logging

from ..config import STATUS_PREFIX

logger = logging.getLogger(__name__)

STATUS_SUBTOPICS = frozenset({
    "broker/load/bytes/sent/1min",
    "broker/load/bytes/received/1min",
    "broker/load/publish/received/1min",
    "broker/load/publish/sent/1min",
    "broker/load/publish/dropped/1min",
    "broker/clients/active",
    "broker/heap/current",
})

STATUS_REQUIRED = 6


def is_status_topic(topic):
    return topic.startswith(STATUS_PREFIX)


class BrokerStatusGate:
    """
    Logs up to STATUS_REQUIRED recognised $SYS values per window.

    Purely informational: data collection does not wait on it.
    """

    def __init__(self, required=STATUS_REQUIRED, subtopics=STATUS_SUBTOPICS):
        self.required = required
        self.subtopics = subtopics
        self.seen = 0

    @property
    def live(self):
        return self.seen >= self.required

    def observe(self, topic, value):
        """Count one status message; returns True if it counted toward the gate."""
        if self.live:
            return False
        sub_topic = topic[len(STATUS_PREFIX):]
        if sub_topic not in self.subtopics:
            return False
        self.seen += 1
        logger.info("%s: %s", topic, value)
        if self.live:
            logger.info("broker status received, window live")
        return True

    def reset(self):
        self.seen = 0
        logger.info("awaiting $SYS response")
