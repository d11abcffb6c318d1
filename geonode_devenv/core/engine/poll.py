"""
Readiness poll — block until an external service answers.

Fixed interval, no backoff: the probe is retried every ``interval``
seconds until it succeeds or the optional overall timeout runs out.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from geonode_devenv.adapters.registry import AdapterRegistry
from geonode_devenv.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


def poll_until_ready(
    registry: AdapterRegistry,
    probe: Action,
    *,
    install_dir: str = ".",
    interval: float = 5.0,
    timeout: float | None = None,
    dry_run: bool = False,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Receipt:
    """Dispatch ``probe`` until it returns an ok receipt.

    Args:
        registry: Dispatcher for the probe action.
        probe: Action whose success means "ready".
        install_dir: Working directory passed through to the adapter.
        interval: Seconds between attempts.
        timeout: Overall limit in seconds. None waits forever.
        dry_run: Do not probe; return the registry's dry-run receipt.
        sleep: Sleep function (injectable for tests).
        clock: Monotonic clock (injectable for tests).

    Returns:
        The first ok receipt (with ``attempts`` in its metadata), or a
        failed receipt once the timeout is exhausted.
    """
    if dry_run:
        return registry.execute_action(probe, install_dir=install_dir, dry_run=True)

    start = clock()
    attempts = 0

    while True:
        attempts += 1
        receipt = registry.execute_action(probe, install_dir=install_dir)
        if receipt.ok:
            receipt.metadata["attempts"] = attempts
            if attempts > 1:
                logger.info("%s ready after %d attempts", probe.description, attempts)
            return receipt

        elapsed = clock() - start
        if timeout is not None and elapsed + interval > timeout:
            return Receipt.failure(
                adapter=probe.adapter,
                action_id=probe.id,
                error=f"{probe.description or probe.id} not ready after {int(timeout)}s",
                metadata={"attempts": attempts, "last_error": receipt.error},
            )

        logger.debug(
            "Not ready yet (%s, attempt %d): %s", probe.id, attempts, receipt.error
        )
        sleep(interval)
