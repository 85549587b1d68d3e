"""
ringside/bracket.py - Waiting queues between bracket phases.

Winners of a phase are appended to the queue of the phase that follows it.
When a match in that phase starts, its two fighters leave the queue. Queues
are plain FIFO lists; duplicate names are kept as-is.
"""

import logging

logger = logging.getLogger(__name__)

# phase -> phase its winners advance to
DEFAULT_PROGRESSION: dict[str, str] = {
    "preliminar": "semi",
    "quartas": "semi",
    "semi": "final",
}


class BracketQueueManager:
    """One ordered queue of waiting winners per destination phase."""

    def __init__(self, progression: dict[str, str] | None = None):
        self._progression = dict(DEFAULT_PROGRESSION if progression is None else progression)
        self._queues: dict[str, list[str]] = {}
        for destination in self._progression.values():
            self._queues.setdefault(destination, [])

    @property
    def progression(self) -> dict[str, str]:
        return dict(self._progression)

    def successor(self, phase: str) -> str | None:
        """Phase that winners of ``phase`` advance to, or None."""
        return self._progression.get(phase)

    def promote(self, current_phase: str, winner: str) -> str | None:
        """Queue ``winner`` for the next phase. Returns the destination phase."""
        destination = self.successor(current_phase)
        if destination is None:
            logger.debug(f"No successor for phase {current_phase!r}, {winner} not queued")
            return None
        self._queues[destination].append(winner)
        logger.info(f"Promoted {winner} from {current_phase} to {destination} queue")
        return destination

    def remove(self, phase: str, name_a: str, name_b: str) -> int:
        """Drop every entry equal to either name from ``phase``'s queue.

        Returns the number of entries removed. Phases without a queue are
        ignored.
        """
        queue = self._queues.get(phase)
        if not queue:
            return 0
        kept = [name for name in queue if name != name_a and name != name_b]
        removed = len(queue) - len(kept)
        self._queues[phase] = kept
        if removed:
            logger.debug(f"Removed {removed} entries from {phase} queue")
        return removed

    def queue(self, phase: str) -> list[str]:
        """Copy of one queue (empty if the phase has none)."""
        return list(self._queues.get(phase, []))

    def snapshot(self) -> dict[str, list[str]]:
        """Copy of all queues, safe to hand to serializers."""
        return {phase: list(names) for phase, names in self._queues.items()}
