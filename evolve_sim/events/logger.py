"""
Event Logger for EvolveSim.

Writes simulation events to a JSONL file, one self-contained JSON object per
line, so runs can be analysed after the fact with nothing but a JSON parser.
"""

import json
import time
from typing import Optional

from ..core.constants import EVENT_LOG_FILE


class EventLogger:
    """
    Buffered JSONL event writer.

    Event types:
    - birth: Offspring produced by reproduction
    - death: Organism starved and was removed
    - source_created: Ledger spawned a new chemical source
    - source_reactivated: Ledger refilled an exhausted source
    - source_depleted: A source ran out of energy and went inactive
    - population: Periodic population / energy snapshot
    - extinction: Last organism died
    - run_start / run_end: Simulation lifecycle markers
    """

    _instance: Optional['EventLogger'] = None

    def __init__(self, filepath: str = None):
        """
        Args:
            filepath: Path to JSONL log file (default: EVENT_LOG_FILE)
        """
        self.filepath = filepath or EVENT_LOG_FILE
        self.enabled = True
        self.buffer = []
        self.buffer_size = 50

    @classmethod
    def get(cls) -> 'EventLogger':
        """Get singleton instance."""
        if cls._instance is None:
            cls._instance = EventLogger()
        return cls._instance

    @classmethod
    def reset(cls):
        """Drop the singleton, flushing anything still buffered."""
        if cls._instance is not None:
            cls._instance.flush()
        cls._instance = None

    def log(self, event_type: str, step: int = 0, **data):
        """
        Record an event.

        Args:
            event_type: e.g. 'birth', 'source_depleted'
            step: Simulation step when it happened
            **data: JSON-serialisable payload
        """
        if not self.enabled:
            return

        event = {
            'type': event_type,
            'step': step,
            'time': time.strftime('%Y-%m-%d %H:%M:%S'),
            **data
        }
        self.buffer.append(event)

        if len(self.buffer) >= self.buffer_size:
            self.flush()

    def flush(self):
        """Write buffered events to file."""
        if not self.buffer:
            return

        try:
            with open(self.filepath, 'a') as f:
                for event in self.buffer:
                    f.write(json.dumps(event) + '\n')
            self.buffer.clear()
        except OSError as e:
            print(f"[EventLog] Write failed: {e}")

    # === Convenience methods ===

    def log_birth(self, step: int, organism_id: int, parent_id: int,
                  generation: int, pos: tuple = None, traits: dict = None):
        self.log('birth', step, organism_id=organism_id, parent_id=parent_id,
                 generation=generation,
                 pos=list(pos) if pos is not None else None,
                 traits=traits)

    def log_death(self, step: int, organism_id: int, generation: int,
                  age: float = 0.0, pos: tuple = None):
        self.log('death', step, organism_id=organism_id, generation=generation,
                 age=round(age, 3), pos=list(pos) if pos is not None else None)

    def log_source_created(self, step: int, pos: tuple, strength: float,
                           energy: float):
        self.log('source_created', step, pos=list(pos),
                 strength=round(strength, 3), energy=round(energy, 3))

    def log_source_reactivated(self, step: int, pos: tuple, energy_added: float):
        self.log('source_reactivated', step, pos=list(pos),
                 energy_added=round(energy_added, 3))

    def log_source_depleted(self, step: int, pos: tuple):
        self.log('source_depleted', step, pos=list(pos))

    def log_population(self, step: int, count: int, avg_energy: float,
                       total_energy: float, target_energy: float,
                       active_sources: int):
        """Periodic population snapshot."""
        self.log('population', step, count=count,
                 avg_energy=round(avg_energy, 3),
                 total_energy=round(total_energy, 3),
                 target_energy=round(target_energy, 3),
                 active_sources=active_sources)

    def log_extinction(self, step: int, sim_time: float = 0.0):
        self.log('extinction', step, sim_time=round(sim_time, 3))

    def log_run(self, step: int, phase: str, **data):
        """Run lifecycle marker ('start' or 'end')."""
        self.log(f'run_{phase}', step, **data)


def event_log() -> EventLogger:
    """Get the singleton EventLogger instance."""
    return EventLogger.get()
