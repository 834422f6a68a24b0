"""
EventSync SDK Demo

Shows batching, retry and restart recovery without a real collector.
Run this after installing the SDK with: pip install -e .
"""

import logging
import tempfile
from pathlib import Path

import eventsync
from eventsync import MockTransport


def main():
    logging.basicConfig(level=logging.INFO, format="[%(name)s] %(message)s")

    print("=" * 60)
    print("EventSync SDK Demo")
    print("=" * 60)

    storage_path = Path(tempfile.mkdtemp()) / "events.json"

    # Run 1: collector is down for the whole cycle
    print("\nRun 1: collector unreachable...\n")
    down = MockTransport(outcomes=[False])
    agent = eventsync.init(
        transport=down,
        storage_path=str(storage_path),
        cooldown_seconds=0.2,
        max_send_attempts=3,
    )

    agent.track("click", "btn1")
    agent.track("click", "btn2")
    agent.track("screen", "settings")
    agent.wait()

    print(f"\n   Attempts made: {down.send_count}")
    print(f"   Still pending: {agent.pending_count}")
    print(f"   Stored snapshot: {storage_path.read_text()}")

    eventsync.shutdown()

    # Run 2: a fresh process picks up where run 1 left off
    print("\nRun 2: restart with the collector back up...\n")
    up = MockTransport()
    agent = eventsync.init(
        transport=up,
        storage_path=str(storage_path),
        cooldown_seconds=0.2,
    )
    agent.wait()

    print("=" * 60)
    print(f"Delivered {len(up.sent_batches)} batch(es):")
    print("=" * 60)

    for i, batch in enumerate(up.sent_batches, 1):
        print(f"\nBatch {i}:")
        for record in batch:
            print(f"   {record.type}: {record.data}")

    stats = eventsync.get_stats()
    print(f"\nScheduler stats: {stats.get('scheduler', {})}")
    print(f"Stored snapshot left: {agent.store.has()}")

    eventsync.shutdown()
    print("\nDemo complete!")


if __name__ == "__main__":
    main()
