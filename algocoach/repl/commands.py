#!/usr/bin/env python3
"""
Command definitions for the coaching REPL.
"""

COMMANDS = {
    # Guidance
    'intro': {
        'help': 'Show the problem introduction',
        'usage': 'intro',
        'examples': ['intro'],
    },
    'prompt': {
        'help': 'Show what to think about before coding',
        'usage': 'prompt',
        'examples': ['prompt'],
    },
    'hint': {
        'help': 'Get a hint for where you are right now',
        'usage': 'hint',
        'examples': ['hint'],
    },
    'ask': {
        'help': 'Ask for help in your own words',
        'usage': 'ask <question>',
        'examples': ['ask I am stuck on the approach', 'ask how do I make this faster?'],
    },

    # Practice
    'run': {
        'help': 'Run the tests against your solution file',
        'usage': 'run',
        'examples': ['run'],
    },
    'status': {
        'help': 'Show attempts, hints used and whether you have passed',
        'usage': 'status',
        'examples': ['status'],
    },
    'info': {
        'help': 'Show details of the loaded guidance script',
        'usage': 'info',
        'examples': ['info'],
    },
    'reset': {
        'help': 'Start the problem over (clears attempts and hints)',
        'usage': 'reset',
        'examples': ['reset'],
    },

    # Utilities
    'help': {
        'help': 'Show available commands',
        'usage': 'help [command]',
        'examples': ['help', 'help ask'],
    },
    'exit': {
        'help': 'Exit the REPL',
        'usage': 'exit',
        'examples': ['exit', 'quit'],
    },
    'quit': {
        'help': 'Exit the REPL (alias for exit)',
        'usage': 'quit',
        'examples': ['quit'],
    },
}


def get_command_help(command: str = None) -> str:
    """Get help text for a command or all commands"""
    if command and command in COMMANDS:
        cmd = COMMANDS[command]
        lines = [
            f"  {command}: {cmd['help']}",
            f"  Usage: {cmd['usage']}",
        ]
        if cmd.get('examples'):
            lines.append(f"  Examples: {', '.join(cmd['examples'])}")
        return '\n'.join(lines)

    groups = {
        'Guidance': ['intro', 'prompt', 'hint', 'ask'],
        'Practice': ['run', 'status', 'info', 'reset'],
        'Utilities': ['help', 'exit'],
    }

    lines = ["Available commands:\n"]
    for group, cmds in groups.items():
        lines.append(f"  {group}:")
        for cmd in cmds:
            lines.append(f"    {cmd:12} - {COMMANDS[cmd]['help']}")
        lines.append("")

    lines.append("Anything else you type is treated as a question (like 'ask').")
    lines.append("Type 'help <command>' for detailed help on a specific command.")
    return '\n'.join(lines)
