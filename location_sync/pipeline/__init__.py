"""
Migration pipeline: extract, load, purge and the run orchestration around them.
"""

from .extractor import Extractor
from .loader import Loader
from .orchestrator import MigrationOrchestrator
from .purger import Purger
from .trigger import RunTrigger, next_fire_time

__all__ = [
    "Extractor",
    "Loader",
    "Purger",
    "MigrationOrchestrator",
    "RunTrigger",
    "next_fire_time",
]
