"""Protean Engine runner for the Reviews domain.

Starts Engine workers that process events asynchronously:
- OutboxProcessor: polls outbox table, publishes review events to Redis Streams
- StreamSubscriptions: reads Redis Streams, invokes projectors and the
  Bookings event handler that keeps the booking ledger current

Usage:
    python src/server.py
"""

import asyncio

from protean.server.engine import Engine
from reviews.domain import reviews
from reviews.utils.logging import configure_logging


async def run():
    reviews.init()
    await Engine(reviews).run()


def main():
    configure_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
