# experiments/plot_results.py
# Per-point loss and inter-arrival latency from analyser CSV results

import argparse
import csv
import glob
from collections import defaultdict

import matplotlib.pyplot as plt


def load_results(pattern):
    """Group result rows by (qos, delay_ms); rows from empty windows are skipped."""
    points = defaultdict(list)
    for file in sorted(glob.glob(pattern)):
        with open(file, 'r') as f:
            reader = csv.DictReader(f)
            for row in reader:
                if row['received'] == '0':
                    continue
                points[(int(row['qos']), int(row['delay_ms']))].append(row)
    return points


def column(rows, name):
    return [float(row[name]) for row in rows if row[name] != '']


parser = argparse.ArgumentParser()
parser.add_argument("--pattern", default="results_run_*.csv")
args = parser.parse_args()

points = load_results(args.pattern)
keys = sorted(points)
labels = [f"q{q}/{d}ms" for q, d in keys]

# ----------------------------------------------------
# Loss rate per matrix point
# ----------------------------------------------------
plt.figure()
plt.boxplot([column(points[k], 'loss_rate') for k in keys], labels=labels)
plt.ylabel("Loss rate")
plt.title("Message loss per QoS / delay")
plt.xticks(rotation=90)
plt.grid(True)

# ----------------------------------------------------
# Inter-arrival median per matrix point
# ----------------------------------------------------
plt.figure()
plt.boxplot([column(points[k], 'delay_median') for k in keys], labels=labels)
plt.ylabel("Inter-message median (ms)")
plt.title("Inter-arrival delay per QoS / delay")
plt.xticks(rotation=90)
plt.grid(True)

# ----------------------------------------------------
# Out-of-order rate
# ----------------------------------------------------
plt.figure()
plt.bar(labels, [sum(column(points[k], 'out_of_order_rate')) / len(points[k]) for k in keys])
plt.ylabel("Mean out-of-order rate")
plt.xticks(rotation=90)
plt.grid(True)
plt.show()

for k, label in zip(keys, labels):
    rates = column(points[k], 'message_rate')
    print(f"{label}: {sum(rates) / len(rates):.1f} msg/s over {len(rates)} windows")
