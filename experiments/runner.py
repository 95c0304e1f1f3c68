# experiments/runner.py
# Runs the relay and the analyser for a number of full sweep cycles

import argparse
import subprocess
import sys
import time

MATRIX_POINTS = 21

parser = argparse.ArgumentParser()
parser.add_argument("--broker", default="localhost")
parser.add_argument("--port", default="1883")
parser.add_argument("--cycles", type=int, default=1)
parser.add_argument("--window", type=float, default=10.0)
parser.add_argument("--results", default="results_run_{run}.csv")
parser.add_argument("--runs", type=int, default=1)
args = parser.parse_args()

broker_args = ["--broker", args.broker, "--port", args.port]
# One window per point, plus start-up settle time
duration = args.cycles * MATRIX_POINTS * (args.window + 1.0) + 5.0

for run in range(args.runs):
    print(f"Run {run + 1}/{args.runs} ({duration:.0f}s)")

    relay = subprocess.Popen([sys.executable, "-m", "qos_sweep.mqtt.relay"] + broker_args)

    time.sleep(2)

    analyser = subprocess.Popen([
        sys.executable, "-m", "qos_sweep.mqtt.analyser",
        "--window", str(args.window),
        "--results", args.results.format(run=run),
    ] + broker_args)

    try:
        time.sleep(duration)
    finally:
        analyser.terminate()
        analyser.wait()
        relay.terminate()
        relay.wait()
