"""Public testing utilities for the phased rollout helper.

Provides a sample wave inventory and a frozen clock for writing
self-contained examples and tests without a real management plane.
"""

from phased_rollout.services.window import fixed_clock
from phased_rollout.testing.fixtures import (
    DEPLOYMENT_ID,
    MASTER_ID,
    sample_inventory,
)

__all__ = ["DEPLOYMENT_ID", "MASTER_ID", "fixed_clock", "sample_inventory"]
