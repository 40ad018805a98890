# check.py
import asyncio

from service_monitor import build_monitor, load_settings

def main():
    """Simple test script to run one scan and display the statuses."""

    config = load_settings()
    _, scheduler = build_monitor(config)
    statuses = asyncio.run(scheduler.tick())

    for name, status in statuses.items():
        print(name, status.to_dict())

if __name__ == "__main__":
    main()
