# ============================================
# FILE: commandant/monitoring/metrics.py
# ============================================

"""
In-process metrics collection for commanders
"""

from typing import Any

from commandant.core.types import CommanderState


class CommanderMetrics:
    """Collect and expose commander metrics"""

    def __init__(self):
        self.metrics = {
            "total_executed": 0,
            "total_successful": 0,
            "total_failed": 0,
            "total_rejected": 0,
            "total_rolled_back": 0,
            "total_rollback_failures": 0,
            "average_execution_time": 0.0,
            "by_commander": {},
        }

    def record_execution(self, commander_name: str, state: CommanderState, duration: float):
        """Record the end of an execute phase (successful or not)"""
        self.metrics["total_executed"] += 1
        self._increment_state_counter(state)
        self._update_average_time(duration)
        self._update_commander_stats(commander_name, state)

    def record_rejection(self, commander_name: str):
        """Record a validation failure (execute never ran)"""
        self.metrics["total_rejected"] += 1
        self._stats_for(commander_name)["rejected"] += 1

    def record_rollback(self, commander_name: str, failures: int = 0):
        """Record a supervisor rollback and how many compensations failed"""
        self.metrics["total_rolled_back"] += 1
        self.metrics["total_rollback_failures"] += failures
        self._stats_for(commander_name)["rolled_back"] += 1

    def _increment_state_counter(self, state: CommanderState) -> None:
        state_map = {
            CommanderState.EXECUTED: "total_successful",
            CommanderState.DONE: "total_successful",
            CommanderState.EXECUTION_FAILED: "total_failed",
        }
        counter = state_map.get(state)
        if counter:
            self.metrics[counter] += 1

    def _update_average_time(self, duration: float) -> None:
        total_time = self.metrics["average_execution_time"] * (self.metrics["total_executed"] - 1)
        self.metrics["average_execution_time"] = (total_time + duration) / self.metrics["total_executed"]

    def _stats_for(self, commander_name: str) -> dict[str, int]:
        return self.metrics["by_commander"].setdefault(
            commander_name,
            {"count": 0, "success": 0, "failed": 0, "rejected": 0, "rolled_back": 0},
        )

    def _update_commander_stats(self, commander_name: str, state: CommanderState) -> None:
        stats = self._stats_for(commander_name)
        stats["count"] += 1
        if state in (CommanderState.EXECUTED, CommanderState.DONE):
            stats["success"] += 1
        else:
            stats["failed"] += 1

    def get_metrics(self) -> dict[str, Any]:
        """Get all metrics"""
        success_rate = (
            self.metrics["total_successful"] / self.metrics["total_executed"] * 100
            if self.metrics["total_executed"] > 0
            else 0
        )

        return {
            **self.metrics,
            "success_rate": f"{success_rate:.2f}%",
        }

    def reset(self) -> None:
        self.__init__()
