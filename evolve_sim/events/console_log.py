"""
Console Logger - verbosity-filtered terminal output.

Messages carry a bracket tag ("[Chemistry] ...") that decides which level
they belong to:
- MINIMAL: run lifecycle, errors, extinction
- WORLD: population and reproduction
- ECO: chemical sources and the energy ledger
- FULL: everything, including cache rebuilds and renderer chatter
"""

from enum import IntEnum
from typing import Optional
from collections import defaultdict


class Verbosity(IntEnum):
    MINIMAL = 0
    WORLD = 1
    ECO = 2
    FULL = 3


class ConsoleLogger:
    """
    Filters bracket-tagged messages by verbosity and counts the ones it
    suppresses so they can be summarised later.
    """

    _instance: Optional['ConsoleLogger'] = None

    def __init__(self):
        self.verbosity = Verbosity.WORLD
        self.enabled = True

        self.event_counts = defaultdict(int)
        self.last_summary_step = 0
        self.summary_interval = 600

        self.categories = {
            'essential': [
                '[Init]', '[Config]', '[Params]', '[Simulator]', '[Headless]',
                '[EXTINCTION]', '[Stats]', '[Shutdown]', '[Error]',
            ],
            'world': [
                '[Population]', '[Birth]',
            ],
            'eco': [
                '[Chemistry]', '[Ledger]',
            ],
            'full': [
                '[Field]', '[Viz]',
            ],
        }

        self.verbosity_names = {
            Verbosity.MINIMAL: "MINIMAL (essentials only)",
            Verbosity.WORLD: "WORLD (population)",
            Verbosity.ECO: "ECO (population + chemistry)",
            Verbosity.FULL: "FULL (everything)",
        }

    @classmethod
    def get(cls) -> 'ConsoleLogger':
        if cls._instance is None:
            cls._instance = ConsoleLogger()
        return cls._instance

    @classmethod
    def reset(cls):
        cls._instance = None

    def cycle_verbosity(self) -> str:
        self.verbosity = Verbosity((self.verbosity + 1) % 4)
        return self.verbosity_names[self.verbosity]

    def set_verbosity(self, level: Verbosity):
        self.verbosity = Verbosity(level)

    def should_print(self, message: str) -> bool:
        """Determine if message should be printed at current verbosity."""
        if not self.enabled:
            return False

        for prefix in self.categories['essential']:
            if message.startswith(prefix):
                return True

        if self.verbosity == Verbosity.MINIMAL:
            return False

        for level, key in ((Verbosity.WORLD, 'world'), (Verbosity.ECO, 'eco')):
            for prefix in self.categories[key]:
                if message.startswith(prefix):
                    return self.verbosity >= level

        # Anything else with a tag is FULL-only
        if message.startswith('['):
            return self.verbosity >= Verbosity.FULL

        # Untagged messages (progress lines, banners) always show
        return True

    def count_event(self, message: str):
        if message.startswith('['):
            end = message.find(']')
            if end > 0:
                self.event_counts[message[1:end]] += 1

    def get_summary(self, step: int) -> Optional[str]:
        """Summary of suppressed messages once per summary_interval steps."""
        if step - self.last_summary_step < self.summary_interval:
            return None
        if not self.event_counts:
            return None

        self.last_summary_step = step
        parts = [f"{category}:{count}" for category, count
                 in sorted(self.event_counts.items(), key=lambda x: -x[1])]
        self.event_counts.clear()
        return f"[Summary] {', '.join(parts[:8])}"

    def log(self, message: str, step: int = 0, force: bool = False) -> bool:
        """
        Print a message if the current verbosity allows it.

        Args:
            message: Text, normally starting with a bracket tag
            step: Current simulation step
            force: Print regardless of verbosity

        Returns:
            True if the message was printed
        """
        if force or self.should_print(message):
            print(message)
            return True
        self.count_event(message)
        return False


def console_log() -> ConsoleLogger:
    """Get singleton ConsoleLogger."""
    return ConsoleLogger.get()
