#!/usr/bin/env python3
# =============================================================================
# Load Testing Script
# =============================================================================
"""
Load test for the Ingest Relay.

Sends a steady stream of analytics payloads:
- Single events and small batches, alternating
- Randomly sparse fields so normalization defaults are exercised

Usage:
    python load_test.py --url https://YOUR_RELAY_URL --rpm 600 --duration 60

Requirements:
    pip install httpx
"""

import argparse
import asyncio
import random
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional, Union

import httpx


# =============================================================================
# Configuration
# =============================================================================

EVENT_TYPES = ["page_view", "click", "signup", "purchase", "scroll"]

PAGES = [
    "https://example.com/",
    "https://example.com/pricing",
    "https://example.com/blog/launch",
    "https://example.com/checkout",
]

MAX_BATCH_SIZE = 10


@dataclass
class TestResult:
    """Result of a single test request."""
    success: bool
    status_code: int
    latency_ms: float
    events_sent: int
    events_processed: int = 0
    error: Optional[str] = None


# =============================================================================
# Test Data Generation
# =============================================================================

def random_id(prefix: str) -> str:
    return f"{prefix}_{''.join(random.choices(string.ascii_lowercase + string.digits, k=10))}"


def generate_event() -> dict:
    """Generate an event with a random subset of fields."""
    event = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": random.choice(EVENT_TYPES),
        "user_id": random_id("user"),
        "session_id": random_id("session"),
        "page_url": random.choice(PAGES),
        "properties": {"latency_ms": random.randint(10, 500)},
    }
    # Drop fields at random so the relay has something to default
    return {k: v for k, v in event.items() if random.random() > 0.3}


def generate_payload(batch: bool) -> Union[dict, List[dict]]:
    if batch:
        return [generate_event() for _ in range(random.randint(1, MAX_BATCH_SIZE))]
    return generate_event()


# =============================================================================
# Load Test Runner
# =============================================================================

async def send_request(
    client: httpx.AsyncClient,
    url: str,
    batch: bool,
) -> TestResult:
    """Send a single request to the relay."""
    payload = generate_payload(batch)
    events_sent = len(payload) if isinstance(payload, list) else 1

    try:
        start = time.perf_counter()
        response = await client.post(url, json=payload)
        latency = (time.perf_counter() - start) * 1000

        events_processed = 0
        if response.status_code == 200:
            events_processed = response.json().get("events_processed", 0)

        return TestResult(
            success=response.status_code == 200 and events_processed == events_sent,
            status_code=response.status_code,
            latency_ms=latency,
            events_sent=events_sent,
            events_processed=events_processed,
            error=None if response.status_code == 200 else response.text[:200],
        )

    except Exception as e:
        return TestResult(
            success=False,
            status_code=0,
            latency_ms=0,
            events_sent=events_sent,
            error=str(e),
        )


async def run_load_test(
    url: str,
    rpm: int,
    duration_seconds: int,
) -> List[TestResult]:
    """Run the load test."""
    results: List[TestResult] = []
    interval = 60.0 / rpm

    print(f"\n{'='*60}")
    print("Ingest Relay Load Test")
    print(f"{'='*60}")
    print(f"Target URL: {url}")
    print(f"Target RPM: {rpm}")
    print(f"Duration: {duration_seconds} seconds")
    print(f"Request interval: {interval*1000:.1f}ms")
    print(f"{'='*60}\n")

    async with httpx.AsyncClient(timeout=30.0) as client:
        start_time = time.perf_counter()
        request_count = 0

        while (time.perf_counter() - start_time) < duration_seconds:
            # Alternate between single events and batches
            batch = request_count % 2 == 1

            result = await send_request(client, url, batch)
            results.append(result)
            request_count += 1

            if request_count % 100 == 0:
                elapsed = time.perf_counter() - start_time
                current_rpm = (request_count / elapsed) * 60
                success_rate = sum(1 for r in results if r.success) / len(results) * 100
                print(f"  Sent {request_count} requests | "
                      f"Actual RPM: {current_rpm:.0f} | "
                      f"Success: {success_rate:.1f}%")

            await asyncio.sleep(interval)

    return results


def print_results(results: List[TestResult]) -> None:
    """Print test results summary."""
    total = len(results)
    if not total:
        print("No requests sent.")
        return

    successful = sum(1 for r in results if r.success)
    failed = total - successful
    events_sent = sum(r.events_sent for r in results)
    events_processed = sum(r.events_processed for r in results)

    latencies = sorted(r.latency_ms for r in results if r.success)
    avg_latency = sum(latencies) / len(latencies) if latencies else 0
    p50 = latencies[int(len(latencies) * 0.50)] if latencies else 0
    p95 = latencies[int(len(latencies) * 0.95)] if latencies else 0
    p99 = latencies[int(len(latencies) * 0.99)] if latencies else 0

    print(f"\n{'='*60}")
    print("RESULTS SUMMARY")
    print(f"{'='*60}")
    print(f"\nTotal Requests:     {total}")
    print(f"Successful (200):   {successful} ({successful/total*100:.1f}%)")
    print(f"Failed:             {failed} ({failed/total*100:.1f}%)")
    print(f"\nEvents sent:        {events_sent}")
    print(f"Events processed:   {events_processed}")
    print("\nLatency (ms):")
    print(f"  Average:          {avg_latency:.1f}")
    print(f"  p50:              {p50:.1f}")
    print(f"  p95:              {p95:.1f}")
    print(f"  p99:              {p99:.1f}")

    errors = [r for r in results if r.error]
    if errors:
        print(f"\nErrors ({len(errors)}):")
        error_types = {}
        for r in errors:
            error_types[r.error] = error_types.get(r.error, 0) + 1
        for error, count in error_types.items():
            print(f"  {error}: {count}")

    print(f"\n{'='*60}")
    if successful / total >= 0.99:
        print("PASS: >99% success rate")
    else:
        print("FAIL: <99% success rate")
    print(f"{'='*60}\n")


# =============================================================================
# Main
# =============================================================================

def main():
    parser = argparse.ArgumentParser(description="Load test for the Ingest Relay")
    parser.add_argument("--url", required=True, help="Relay endpoint URL")
    parser.add_argument("--rpm", type=int, default=600, help="Requests per minute")
    parser.add_argument("--duration", type=int, default=60, help="Test duration in seconds")

    args = parser.parse_args()

    results = asyncio.run(run_load_test(args.url, args.rpm, args.duration))
    print_results(results)


if __name__ == "__main__":
    main()
