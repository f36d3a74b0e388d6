# scripts/latency_check.py
import argparse
import time
from concurrent.futures import ThreadPoolExecutor

import pandas as pd
import requests

# Configuration
API_URL = "http://localhost:8000"
ENDPOINTS = [
    "/analytics/sales?filter=week",
    "/analytics/sales?filter=month",
    "/analytics/sales?filter=year",
    "/analytics/general?filter=month",
]

def timed_get(path: str, user_id: str) -> dict:
    start_time = time.perf_counter()
    response = requests.get(f"{API_URL}{path}", headers={"X-User-Id": user_id}, timeout=30)
    return {
        "endpoint": path,
        "status": response.status_code,
        "seconds": time.perf_counter() - start_time,
    }

def run_latency_check(user_id: str, rounds: int, workers: int) -> pd.DataFrame:
    print(f"Sending {rounds * len(ENDPOINTS)} requests with {workers} workers...")
    paths = ENDPOINTS * rounds
    with ThreadPoolExecutor(max_workers=workers) as pool:
        results = list(pool.map(lambda p: timed_get(p, user_id), paths))
    return pd.DataFrame(results)

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Measure analytics endpoint latency.")
    parser.add_argument("--user", default="demo-user", help="User id to query as")
    parser.add_argument("--rounds", type=int, default=25, help="Requests per endpoint")
    parser.add_argument("--workers", type=int, default=8, help="Concurrent requests")
    args = parser.parse_args()

    try:
        # Check if the server is running
        requests.get(f"{API_URL}/health", timeout=5)
    except requests.exceptions.ConnectionError:
        print("Error: Could not connect to API.")
        print("Make sure the app is running: 'uvicorn sales_analytics.main:app --reload'")
    else:
        df = run_latency_check(args.user, args.rounds, args.workers)
        failures = df[df["status"] != 200]
        if not failures.empty:
            print(f"{len(failures)} requests failed: {failures['status'].value_counts().to_dict()}")
        summary = df.groupby("endpoint")["seconds"].describe(percentiles=[0.5, 0.95])
        print(summary[["count", "mean", "50%", "95%", "max"]].round(4).to_string())
