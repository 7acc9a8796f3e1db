"""Entry-point-based auto-discovery utilities.

Each Scholaris package advertises its routers, middleware, error handlers
and lifespan hooks under the ``scholaris.*`` entry-point groups. The app
factory loads them through :func:`discover` so that installing a package
is enough to wire it into the API.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib.metadata import entry_points
from typing import Any

logger = logging.getLogger(__name__)

GROUP_ROUTERS = "scholaris.routers"
GROUP_MIDDLEWARE = "scholaris.middleware"
GROUP_ERROR_HANDLERS = "scholaris.error_handlers"
GROUP_LIFESPAN = "scholaris.lifespan"


@dataclass(frozen=True, slots=True)
class DiscoveredContribution:
    """A single discovered entry point contribution.

    Attributes:
        name: Entry point name (e.g., ``"provisioning"``).
        group: Entry point group (e.g., ``"scholaris.routers"``).
        value: The loaded Python object.
    """

    name: str
    group: str
    value: Any


def discover(
    group: str,
    *,
    exclude_names: frozenset[str] = frozenset(),
) -> list[DiscoveredContribution]:
    """Discover and load all entry points for a given group.

    Contributions are returned sorted by entry-point name so that route
    registration order does not depend on package install order. Entry
    points that fail to import are logged and skipped; a broken optional
    package must not take the whole API down.

    Args:
        group: The entry point group name (e.g., ``"scholaris.routers"``).
        exclude_names: Entry point names to skip.

    Returns:
        List of successfully loaded contributions.
    """
    contributions: list[DiscoveredContribution] = []

    for ep in sorted(entry_points(group=group), key=lambda e: e.name):
        if ep.name in exclude_names:
            logger.debug("entry_point_excluded", extra={"group": group, "entry_point": ep.name})
            continue
        try:
            loaded = ep.load()
        except Exception:
            logger.exception(
                "entry_point_load_failed", extra={"group": group, "entry_point": ep.name}
            )
            continue
        contributions.append(DiscoveredContribution(name=ep.name, group=group, value=loaded))

    logger.info(
        "entry_points_discovered",
        extra={"group": group, "count": len(contributions)},
    )
    return contributions
