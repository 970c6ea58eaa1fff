#!/usr/bin/env python3
"""
Interactive REPL session for practising one problem with coaching.
"""

import logging
from pathlib import Path
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.markdown import Markdown
from rich.text import Text

from ..coaching import CoachingEngine, HarnessError, run_tests
from ..coaching.harness import DEFAULT_TIMEOUT
from ..config import get_config_dir
from .commands import get_command_help

logger = logging.getLogger(__name__)


class CoachREPL:
    """Interactive REPL around a CoachingEngine"""

    def __init__(
        self,
        engine: CoachingEngine,
        solution_file: Optional[str] = None,
        test_command: Optional[str] = None,
        cwd: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        console: Console = None,
        prompt_session: PromptSession = None,
    ):
        self.engine = engine
        self.solution_file = Path(solution_file) if solution_file else None
        self.test_command = test_command
        self.cwd = cwd
        self.timeout = timeout
        self.console = console or Console()
        self.prompt_session = prompt_session

    def run(self):
        """Main REPL loop"""
        if self.prompt_session is None:
            history_path = get_config_dir() / 'repl_history'
            self.prompt_session = PromptSession(
                history=FileHistory(str(history_path)),
                auto_suggest=AutoSuggestFromHistory(),
            )

        self._print_welcome()

        while True:
            try:
                user_input = self.prompt_session.prompt(self._get_prompt())

                if not user_input.strip():
                    continue

                result = self.process_command(user_input.strip())

                if result == 'exit':
                    self._handle_exit()
                    break

            except KeyboardInterrupt:
                self.console.print("\n[dim]Use 'exit' to quit[/dim]")
            except EOFError:
                self._handle_exit()
                break

    def _print_welcome(self):
        welcome = """
[bold blue]algocoach[/bold blue] - practice with a coach at your side

[dim]Commands: intro, prompt, hint, ask, run, status, help
Type 'help' for all commands or 'help <cmd>' for details.[/dim]
"""
        self.console.print(Panel(welcome, border_style="blue"))

        if not self.engine.is_loaded():
            self.console.print("[yellow]No guidance script loaded. Coaching messages are unavailable.[/yellow]")
            return

        self._cmd_intro('')

    def _get_prompt(self) -> str:
        """Generate context-aware prompt"""
        parts = ['algocoach']

        info = self.engine.get_script_info()
        if info:
            parts.append(f"[{info.id}]")

        state = self.engine.session.get_state()
        if state.passed:
            parts.append('(solved)')
        elif state.attempts:
            parts.append(f"(#{state.attempts})")

        return ' '.join(parts) + '> '

    def process_command(self, user_input: str) -> Optional[str]:
        """Process user input and dispatch to handlers"""
        parts = user_input.split(maxsplit=1)
        command = parts[0].lower()
        args = parts[1] if len(parts) > 1 else ''

        handlers = {
            'intro': self._cmd_intro,
            'prompt': self._cmd_prompt,
            'hint': self._cmd_hint,
            'ask': self._cmd_ask,
            'run': self._cmd_run,
            'status': self._cmd_status,
            'info': self._cmd_info,
            'reset': self._cmd_reset,
            'help': self._cmd_help,
            'exit': lambda _: 'exit',
            'quit': lambda _: 'exit',
        }

        handler = handlers.get(command)
        if handler:
            return handler(args)

        # Free text is a help request
        return self._cmd_ask(user_input)

    # === Command Handlers ===

    def _show_guidance(self, message: Optional[str], title: str, empty: str, style: str = "cyan"):
        if message:
            self.console.print(Panel(Markdown(message), title=f"[{style}]{title}[/{style}]", border_style=style))
        else:
            self.console.print(f"[dim]{empty}[/dim]")

    def _cmd_intro(self, args: str) -> None:
        self._show_guidance(self.engine.get_introduction(), "Introduction",
                            "No introduction for this problem.", style="blue")

    def _cmd_prompt(self, args: str) -> None:
        self._show_guidance(self.engine.get_pre_prompt(), "Before you code",
                            "No pre-coding guidance for this problem.")

    def _cmd_hint(self, args: str) -> None:
        """Show the first hint whose trigger matches the current code"""
        hint = self.engine.get_hint(self._read_solution())
        self._show_guidance(hint, "Hint", "No hint available right now. Keep trying!", style="yellow")

    def _cmd_ask(self, args: str) -> None:
        if not args:
            self.console.print("[red]Usage: ask <question>[/red]")
            return

        answer = self.engine.handle_request(args)
        self._show_guidance(answer, "Coach",
                            "I don't have guidance for that. Try 'hint', or mention "
                            "what you're stuck on.")

    def _cmd_run(self, args: str) -> None:
        """Run the tests and show on_run feedback"""
        if not self.test_command:
            self.console.print("[red]No test command configured.[/red]")
            self.console.print("[dim]Start with --test-command or set 'test_command' in the config.[/dim]")
            return

        code = self._read_solution()

        try:
            result = run_tests(self.test_command, cwd=self.cwd, timeout=self.timeout)
        except HarnessError as e:
            self.console.print(f"[red]{e.message}[/red]")
            return

        feedback = self.engine.process_execution(code, result)
        attempts = self.engine.session.get_state().attempts

        if result.passed:
            self.console.print(f"\n[green]All tests passed (attempt {attempts})[/green]")
        else:
            self.console.print(f"\n[yellow]Tests failed (attempt {attempts}, exit code {result.exit_code})[/yellow]")
            output = (result.stderr or result.stdout).strip()
            if output:
                self.console.print(Panel(Text(output[-2000:]), title="[red]Output[/red]", border_style="red"))

        if feedback:
            self._show_guidance(feedback, "Coach", "")

        if result.passed:
            self._show_guidance(self.engine.get_success_message(), "Solved",
                                "Nice work!", style="green")

    def _cmd_status(self, args: str) -> None:
        state = self.engine.session.get_state()

        table = Table(title=f"Progress: {state.problem_id or 'no problem'}")
        table.add_column("Field", style="cyan")
        table.add_column("Value")
        table.add_row("Attempts", str(state.attempts))
        table.add_row("Passed", "[green]yes[/green]" if state.passed else "no")
        table.add_row("Hints viewed", str(state.hints_viewed))
        table.add_row("Started", state.started_at.strftime('%Y-%m-%d %H:%M:%S'))
        self.console.print(table)

    def _cmd_info(self, args: str) -> None:
        info = self.engine.get_script_info()
        if not info:
            self.console.print("[dim]No guidance script loaded.[/dim]")
            return

        self.console.print(f"\n[bold]{info.title}[/bold] [dim]({info.id})[/dim]")
        self.console.print(f"Difficulty: {info.difficulty} | Language: {info.language} | Steps: {info.step_count}")
        if info.tags:
            self.console.print(f"Tags: {', '.join(info.tags)}")

    def _cmd_reset(self, args: str) -> None:
        info = self.engine.get_script_info()
        problem_id = info.id if info else self.engine.session.problem_id
        self.engine.session.reset(problem_id)
        self.console.print("[green]Progress reset.[/green]")

    def _cmd_help(self, args: str) -> None:
        self.console.print(get_command_help(args.strip() or None), markup=False)

    def _handle_exit(self):
        state = self.engine.session.get_state()
        if state.attempts:
            outcome = "solved" if state.passed else "not solved yet"
            self.console.print(f"\n[dim]{state.attempts} attempt(s), {state.hints_viewed} hint(s), {outcome}.[/dim]")
        self.console.print("[dim]Goodbye![/dim]")

    def _read_solution(self) -> str:
        """Current contents of the solution file ('' when unavailable)"""
        if not self.solution_file:
            return ''
        try:
            return self.solution_file.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", self.solution_file, e)
            return ''
