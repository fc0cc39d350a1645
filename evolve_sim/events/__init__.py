"""Event logging system."""

from .logger import EventLogger, event_log
from .console_log import ConsoleLogger, console_log, Verbosity
