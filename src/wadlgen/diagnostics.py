"""Append-only channel for non-fatal anomalies found while parsing or compiling."""

import logging

logger = logging.getLogger(__name__)


class Diagnostics:
    """Collects warnings for one parse or compilation run.

    Every warning is also logged, so callers that never look at the
    collected list still see it on the ``wadlgen`` logger.
    """

    def __init__(self) -> None:
        self.warnings: list[str] = []

    def warn(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning(message)
