"""
RenderStats - Statistics for a pre-render run.
"""

import time
from dataclasses import dataclass, field
from typing import List


@dataclass
class RenderStats:
    """
    Statistics for a pre-render run.

    Attributes:
        total_to_process: Diagrams found in the selected books
        processed: Diagrams exported at every density
        missing: Diagrams that disappeared before they were exported
        errors: Diagrams with at least one failed density
        variants: Individual density exports returned
        start_time: Start timestamp
        error_details: List of error messages
    """
    total_to_process: int = 0
    processed: int = 0
    missing: int = 0
    errors: int = 0
    variants: int = 0
    start_time: float = field(default_factory=time.time)
    error_details: List[str] = field(default_factory=list)

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time in seconds."""
        return time.time() - self.start_time

    @property
    def rate_per_minute(self) -> float:
        """Diagrams per minute."""
        if self.elapsed_seconds > 0:
            return self.processed / self.elapsed_seconds * 60
        return 0.0

    @property
    def completed_count(self) -> int:
        """Total completed (processed + missing + errors)."""
        return self.processed + self.missing + self.errors

    @property
    def remaining_count(self) -> int:
        return self.total_to_process - self.completed_count
