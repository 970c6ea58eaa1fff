#!/usr/bin/env python3
"""
File watcher for coaching sessions.
Re-runs the tests whenever the solution file is saved and shows the
guidance the engine picks for the result.
"""

import logging
import os
import threading
import time
from typing import Optional

from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

from rich.console import Console
from rich.panel import Panel
from rich.markdown import Markdown
from rich.markup import escape
from rich.text import Text

from .engine import CoachingEngine
from .errors import HarnessError
from .harness import DEFAULT_TIMEOUT, run_tests
from .state import ExecutionResult

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 1.5


class SolutionReviewer(FileSystemEventHandler):
    """Runs the tests on every save of the watched solution file"""

    def __init__(
        self,
        filepath: str,
        engine: CoachingEngine,
        test_command: str,
        console: Console = None,
        cwd: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        super().__init__()
        self.filepath = os.path.abspath(filepath)
        self.engine = engine
        self.test_command = test_command
        self.console = console or Console()
        self.cwd = cwd or os.path.dirname(self.filepath)
        self.timeout = timeout
        self.debounce_seconds = debounce_seconds
        self.last_modified = 0.0
        self.last_content = None
        self.solved = threading.Event()
        self._lock = threading.Lock()

    def on_modified(self, event):
        if not event.is_directory:
            self._handle_path(event.src_path)

    def on_created(self, event):
        if not event.is_directory:
            self._handle_path(event.src_path)

    def on_moved(self, event):
        # Editors that save atomically rename a temp file over the original
        if not event.is_directory:
            self._handle_path(event.dest_path)

    def _handle_path(self, path: str):
        if os.path.abspath(path) != self.filepath:
            return

        current_time = time.time()
        if current_time - self.last_modified < self.debounce_seconds:
            return
        self.last_modified = current_time

        try:
            with open(self.filepath, 'r', encoding='utf-8') as f:
                code = f.read()
        except (OSError, UnicodeDecodeError) as e:
            self.console.print(f"[red]Error reading file: {escape(str(e))}[/red]")
            return

        if code == self.last_content:
            return
        self.last_content = code

        thread = threading.Thread(target=self.review, args=(code,))
        thread.daemon = True
        thread.start()

    def review(self, code: str) -> Optional[ExecutionResult]:
        """Run the tests for one saved version and display the feedback"""
        with self._lock:
            if self.solved.is_set():
                return None

            self.console.print(f"\n[dim]{'─' * 70}[/dim]")
            self.console.print(f"[cyan]Running: {escape(self.test_command)}[/cyan]")

            try:
                result = run_tests(self.test_command, cwd=self.cwd, timeout=self.timeout)
            except HarnessError as e:
                self.console.print(f"[red]{e.message}[/red]")
                return None

            feedback = self.engine.process_execution(code, result)
            self._display_result(result, feedback)

            if result.passed:
                self._show_success()
                self.solved.set()

            return result

    def _display_result(self, result: ExecutionResult, feedback: Optional[str]):
        attempts = self.engine.session.get_state().attempts

        if result.passed:
            self.console.print(f"[green]All tests passed (attempt {attempts})[/green]")
        else:
            self.console.print(f"[yellow]Tests failed (attempt {attempts}, exit code {result.exit_code})[/yellow]")
            output = (result.stderr or result.stdout).strip()
            if output:
                self.console.print(Panel(
                    Text(output[-2000:]),
                    title="[red]Output[/red]",
                    border_style="red"
                ))

        if feedback:
            self.console.print(Panel(
                Markdown(feedback),
                title="[cyan]Coach[/cyan]",
                border_style="cyan"
            ))

    def _show_success(self):
        message = self.engine.get_success_message()
        if message:
            self.console.print(Panel(
                Markdown(message),
                title="[green]Solved[/green]",
                border_style="green"
            ))
        self.console.print("\n[dim]Press Ctrl+C to exit[/dim]")


class SolutionWatcher:
    """Manages the file watching process"""

    def __init__(
        self,
        filepath: str,
        engine: CoachingEngine,
        test_command: str,
        console: Console = None,
        cwd: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self.filepath = filepath
        self.console = console or Console()
        self.handler = SolutionReviewer(
            filepath=filepath,
            engine=engine,
            test_command=test_command,
            console=self.console,
            cwd=cwd,
            timeout=timeout,
            debounce_seconds=debounce_seconds,
        )
        self.observer = None

    def start(self):
        """Start watching the file"""
        self.observer = Observer()
        watch_dir = os.path.dirname(os.path.abspath(self.filepath))
        self.observer.schedule(self.handler, path=watch_dir, recursive=False)
        self.observer.start()
        logger.debug("Watching %s", watch_dir)

        self.console.print(f"\n[green]Watching {os.path.basename(self.filepath)} for changes...[/green]")
        self.console.print("[dim]Tests run each time you save the file.[/dim]")

    def stop(self):
        """Stop watching"""
        if self.observer:
            self.observer.stop()
            self.observer.join()
            self.observer = None

    def wait(self):
        """Block until the tests pass or the user interrupts"""
        try:
            while not self.handler.solved.wait(0.5):
                pass
        except KeyboardInterrupt:
            self.console.print("\n[dim]Stopping file watcher...[/dim]")
        finally:
            self.stop()
