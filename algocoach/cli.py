#!/usr/bin/env python3
"""
algocoach - Algorithm Practice Coach CLI

Usage:
    algocoach validate problems/two-sum
    algocoach info problems/two-sum/trainer.yaml
    algocoach generate --id two-sum --title "Two Sum" --difficulty easy --tags array hash-table
    algocoach coach problems/two-sum --file solution.py --test-command "pytest -q"
    algocoach watch problems/two-sum solution.py --test-command "pytest -q"
"""

import sys
import argparse
import logging
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from .coaching import (
    CoachingEngine,
    CoachingSession,
    ScriptGenerator,
    ScriptLoadError,
    ScriptLoader,
    ScriptValidationError,
    check_triggers,
    to_yaml,
    validate_script,
)
from .coaching.generator import TEMPLATE_NAMES
from .coaching.state import GuidanceScript, SUPPORTED_LANGUAGES
from .config import load_config
from .logs import setup_logging

logger = logging.getLogger(__name__)


def _make_loader(config) -> ScriptLoader:
    return ScriptLoader(filenames=config['script_filenames'])


def cmd_validate(args, config, console: Console) -> int:
    """Validate a guidance script and report every problem"""
    loader = _make_loader(config)

    try:
        raw = loader.read_script(args.path)
    except ScriptLoadError as e:
        console.print(f"[red]{e.message}[/red]")
        for key, value in e.context.items():
            console.print(f"  [dim]{key}: {escape(str(value))}[/dim]")
        return 1

    if raw is None:
        console.print(f"[red]No guidance script found at {args.path}[/red]")
        return 1

    result = validate_script(raw)
    if not result.valid:
        console.print(f"[red]Invalid guidance script ({len(result.errors)} error(s)):[/red]")
        for error in result.errors:
            console.print(f"  - {escape(error)}")
        return 1

    script = GuidanceScript.from_dict(raw)
    warnings = check_triggers(script)
    for warning in warnings:
        console.print(f"[yellow]warning:[/yellow] {escape(warning)}")

    console.print(f"[green]Valid guidance script:[/green] {script.title} ({len(script.steps)} steps)")
    return 0


def cmd_info(args, config, console: Console) -> int:
    """Show metadata of a guidance script"""
    engine = CoachingEngine(CoachingSession(), loader=_make_loader(config))

    try:
        if not engine.load_script(args.path):
            console.print(f"[red]No guidance script found at {args.path}[/red]")
            return 1
    except (ScriptLoadError, ScriptValidationError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        return 1

    info = engine.get_script_info()
    counts = {}
    for step in engine.script.steps:
        counts[step.type.value] = counts.get(step.type.value, 0) + 1

    console.print(f"\n[bold]{info.title}[/bold] [dim]({info.id})[/dim]")
    console.print(f"Difficulty: {info.difficulty}")
    console.print(f"Language:   {info.language}")
    console.print(f"Tags:       {', '.join(info.tags) or '-'}")
    console.print(f"Steps:      {info.step_count}")
    for step_type, count in counts.items():
        console.print(f"  {step_type:14} {count}")
    return 0


def cmd_generate(args, config, console: Console) -> int:
    """Generate a starter trainer.yaml from problem metadata"""
    generator = ScriptGenerator(
        template=args.template,
        language=args.language,
        include_topic_hints=not args.no_topic_hints,
    )
    script = generator.generate(args.id, args.title, args.difficulty, args.tags or [])
    text = to_yaml(script)

    if args.output:
        output = Path(args.output)
        if output.is_dir():
            output = output / 'trainer.yaml'
        output.write_text(text, encoding='utf-8')
        console.print(f"[green]Wrote {output}[/green] ({len(script.steps)} steps)")
    else:
        sys.stdout.write(text)
    return 0


def _load_for_session(args, config, console: Console):
    """Build an engine for a problem directory; None if it cannot be used"""
    session = CoachingSession(Path(args.problem_dir).name)
    engine = CoachingEngine(session, loader=_make_loader(config))

    try:
        if engine.load_script(args.problem_dir):
            session.reset(engine.get_script_info().id)
        else:
            console.print(f"[yellow]No guidance script found in {args.problem_dir}[/yellow]")
    except (ScriptLoadError, ScriptValidationError) as e:
        console.print(f"[red]{escape(str(e))}[/red]")
        return None

    return engine


def cmd_coach(args, config, console: Console) -> int:
    """Start the interactive coaching REPL"""
    from .repl import CoachREPL

    engine = _load_for_session(args, config, console)
    if engine is None:
        return 1

    repl = CoachREPL(
        engine,
        solution_file=args.file,
        test_command=args.test_command or config['test_command'],
        cwd=args.problem_dir,
        timeout=config['test_timeout'],
        console=console,
    )
    repl.run()
    return 0


def cmd_watch(args, config, console: Console) -> int:
    """Watch a solution file and coach on every save"""
    from .coaching.file_watcher import SolutionWatcher

    test_command = args.test_command or config['test_command']
    if not test_command:
        console.print("[red]A test command is required (--test-command or 'test_command' in config).[/red]")
        return 1

    engine = _load_for_session(args, config, console)
    if engine is None:
        return 1

    intro = engine.get_introduction()
    if intro:
        from rich.markdown import Markdown
        from rich.panel import Panel
        console.print(Panel(Markdown(intro), border_style="blue"))

    watcher = SolutionWatcher(
        args.solution,
        engine,
        test_command,
        console=console,
        cwd=args.problem_dir,
        timeout=config['test_timeout'],
        debounce_seconds=config['debounce_seconds'],
    )
    watcher.start()
    watcher.wait()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='algocoach',
        description='algocoach - scripted coaching for algorithm practice',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  algocoach validate problems/two-sum                 # Check a trainer.yaml
  algocoach info problems/two-sum                     # Show script metadata
  algocoach generate --id two-sum --title "Two Sum" --difficulty easy --tags array hash-table
  algocoach coach problems/two-sum --file problems/two-sum/solution.py --test-command "pytest -q"
  algocoach watch problems/two-sum problems/two-sum/solution.py --test-command "pytest -q"
        """
    )
    parser.add_argument('-v', '--verbose', action='store_true', help='Show debug logging')
    parser.add_argument('-q', '--quiet', action='store_true', help='Only show errors')

    subparsers = parser.add_subparsers(dest='command')

    validate = subparsers.add_parser('validate', help='Validate a guidance script')
    validate.add_argument('path', help='Script file or problem directory')
    validate.set_defaults(func=cmd_validate)

    info = subparsers.add_parser('info', help='Show guidance script metadata')
    info.add_argument('path', help='Script file or problem directory')
    info.set_defaults(func=cmd_info)

    generate = subparsers.add_parser('generate', help='Generate a starter guidance script')
    generate.add_argument('--id', required=True, help='Problem id, e.g. two-sum')
    generate.add_argument('--title', required=True, help='Problem title')
    generate.add_argument('--difficulty', required=True, choices=['easy', 'medium', 'hard'])
    generate.add_argument('--tags', nargs='*', default=[], help='Problem tags')
    generate.add_argument('--language', default='python', choices=list(SUPPORTED_LANGUAGES))
    generate.add_argument('--template', choices=list(TEMPLATE_NAMES),
                          help='Template (default: picked from difficulty)')
    generate.add_argument('--no-topic-hints', action='store_true',
                          help='Do not add hints for recognised tags')
    generate.add_argument('-o', '--output', help='Write to this file (or directory) instead of stdout')
    generate.set_defaults(func=cmd_generate)

    coach = subparsers.add_parser('coach', help='Interactive coaching REPL')
    coach.add_argument('problem_dir', help='Problem directory containing trainer.yaml')
    coach.add_argument('--file', help='Your solution file')
    coach.add_argument('--test-command', help='Shell command that runs the tests')
    coach.set_defaults(func=cmd_coach)

    watch = subparsers.add_parser('watch', help='Coach on every save of your solution')
    watch.add_argument('problem_dir', help='Problem directory containing trainer.yaml')
    watch.add_argument('solution', help='Your solution file')
    watch.add_argument('--test-command', help='Shell command that runs the tests')
    watch.set_defaults(func=cmd_watch)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config()
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = config['log_level']
    setup_logging(level)

    if not getattr(args, 'func', None):
        parser.print_help()
        return 0

    console = Console()
    return args.func(args, config, console)


if __name__ == "__main__":
    sys.exit(main())
