"""Foreground run loop: start the program, wait, stop it."""

import asyncio
import logging
import signal

from servicekit.service.base import Program, ServiceBackend, WaitStrategy

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS = (signal.SIGINT, signal.SIGTERM)


async def wait_for_termination() -> None:
    """Block until the process receives SIGINT or SIGTERM."""
    loop = asyncio.get_running_loop()
    received = asyncio.Event()

    def handle_signal(sig: signal.Signals) -> None:
        logger.info("Received %s, shutting down", sig.name)
        received.set()

    for sig in TERMINATION_SIGNALS:
        loop.add_signal_handler(sig, handle_signal, sig)
    try:
        await received.wait()
    finally:
        for sig in TERMINATION_SIGNALS:
            loop.remove_signal_handler(sig)


async def run_foreground(
    service: ServiceBackend,
    program: Program,
    wait: WaitStrategy | None = None,
) -> None:
    """Run ``program`` until the wait strategy returns, then stop it.

    A failing ``start`` propagates immediately without waiting or
    stopping. Once started, the program is stopped even if the wait
    strategy raises.

    Args:
        service: Backend handle passed to the program hooks.
        program: The hooks to drive.
        wait: Replaces the default signal wait when given.
    """
    await program.start(service)
    try:
        await (wait or wait_for_termination)()
    finally:
        await program.stop(service)
