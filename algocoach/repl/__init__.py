"""Interactive coaching REPL"""

from .session import CoachREPL
from .commands import COMMANDS, get_command_help

__all__ = ['CoachREPL', 'COMMANDS', 'get_command_help']
