from qos_sweep.analysis.status import STATUS_SUBTOPICS, BrokerStatusGate, is_status_topic


def test_status_topic_prefix():
    assert is_status_topic("$SYS/broker/heap/current")
    assert not is_status_topic("counter/0/0")


def test_unrecognised_status_topics_do_not_count():
    gate = BrokerStatusGate()

    assert not gate.observe("$SYS/broker/version", "mosquitto 2.0")
    assert not gate.observe("$SYS/broker/uptime", "12 seconds")
    assert gate.seen == 0


def test_gate_counts_at_most_six():
    gate = BrokerStatusGate()

    counted = [gate.observe("$SYS/" + sub, "1") for sub in sorted(STATUS_SUBTOPICS)]

    assert counted.count(True) == 6
    assert gate.seen == 6
    assert gate.live


def test_reset_reopens_gate():
    gate = BrokerStatusGate()
    for _ in range(6):
        gate.observe("$SYS/broker/clients/active", "3")
    assert gate.live

    gate.reset()

    assert gate.seen == 0
    assert not gate.live
    assert gate.observe("$SYS/broker/clients/active", "3")
