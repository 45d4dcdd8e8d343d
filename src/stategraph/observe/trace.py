# trace.py - Run Trace Collector
#
# Records every node execution of a graph run for:
#   - Debugging
#   - Performance analysis
#   - Exporting a run as JSON

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class StepTrace:
    """One node execution in a run."""
    step_number: int
    node: str
    updated_fields: list[str] = field(default_factory=list)
    next_node: Optional[str] = None
    route_key: Optional[str] = None  # set when a router picked next_node
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    duration_ms: float = 0.0


@dataclass
class RunTrace:
    """Complete trace of one graph run."""
    session_id: Optional[str] = None
    steps: list[StepTrace] = field(default_factory=list)
    start_time: str = field(default_factory=lambda: datetime.now().isoformat())
    end_time: Optional[str] = None
    total_steps: int = 0
    nodes_visited: int = 0

    def add_step(self, step: StepTrace) -> None:
        self.steps.append(step)
        self.total_steps = len(self.steps)

    def finalize(self) -> None:
        """Mark the run as complete."""
        self.end_time = datetime.now().isoformat()
        self.nodes_visited = len({s.node for s in self.steps})

    def path(self) -> list[str]:
        """Node names in execution order."""
        return [s.node for s in self.steps]

    def summary(self) -> dict:
        """Return a summary of the run for logging/display."""
        return {
            "session_id": self.session_id,
            "total_steps": self.total_steps,
            "nodes_visited": self.nodes_visited,
            "path": self.path(),
            "total_ms": round(sum(s.duration_ms for s in self.steps), 2),
            "start": self.start_time,
            "end": self.end_time,
        }
