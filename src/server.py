"""Protean Engine runner for the storefront domains.

In production event processing is asynchronous: the Engine publishes
outbox events to Redis Streams and feeds them to projectors, such as the
shipment tracking view.

Usage:
    python src/server.py                     # Run both domain engines
    python src/server.py --domain ordering   # Run only the ordering engine
"""

import argparse
import asyncio

from protean.server.engine import Engine

from shared.logging import configure_logging

DOMAIN_NAMES = ["catalogue", "ordering"]


def load_domain(name):
    """Import and initialize a domain by name."""
    if name == "catalogue":
        from catalogue.domain import catalogue

        catalogue.init()
        return catalogue
    elif name == "ordering":
        from ordering.domain import ordering

        ordering.init()
        return ordering
    else:
        raise ValueError(f"Unknown domain: {name}")


async def run(domain_names):
    engines = [Engine(load_domain(name)) for name in domain_names]
    await asyncio.gather(*(engine.run() for engine in engines))


def main():
    parser = argparse.ArgumentParser(description="Storefront Engine runner")
    parser.add_argument(
        "--domain",
        choices=DOMAIN_NAMES,
        help="Run a single domain engine (default: run all)",
    )
    args = parser.parse_args()

    configure_logging()
    asyncio.run(run([args.domain] if args.domain else DOMAIN_NAMES))


if __name__ == "__main__":
    main()
