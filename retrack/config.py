"""
Runtime configuration and the diagnostic logger.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger("retrack")


@dataclass
class Config:
    """
    debug: emit tracing messages on the "retrack" logger
    cycle_prevention: skip every observer on the activation stack when
        triggering, not only the one currently running
    batch_updates: let `batch` defer observers until it closes
    deep_max_depth: nesting depth beyond which observe returns raw values
    tracking_depth: maximum number of nested observer runs
    """

    debug: bool = False
    cycle_prevention: bool = True
    batch_updates: bool = True
    deep_max_depth: int = 10
    tracking_depth: int = 100
