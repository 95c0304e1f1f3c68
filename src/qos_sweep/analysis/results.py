# src/qos_sweep/analysis/results.py
# Per-window results as CSV, one row per closed window

import csv
import time

FIELDS = [
    "timestamp", "qos", "delay_ms", "received", "expected",
    "message_rate", "loss_rate", "out_of_order_rate", "delay_mean", "delay_median",
]


class ResultsWriter:
    def __init__(self, path):
        self.path = path
        with open(self.path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(FIELDS)

    def write(self, guarantee, delay_ms, stats):
        # Empty windows are kept as a row with blank metrics
        if stats is None:
            metrics = [0, 0, "", "", "", "", ""]
        else:
            metrics = [
                stats.received,
                stats.expected,
                stats.message_rate,
                "" if stats.loss_rate is None else stats.loss_rate,
                stats.out_of_order_rate,
                stats.delay_mean,
                stats.delay_median,
            ]
        with open(self.path, 'a', newline='') as f:
            writer = csv.writer(f)
            writer.writerow([time.time(), int(guarantee), delay_ms] + metrics)
