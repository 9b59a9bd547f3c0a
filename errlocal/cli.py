import argparse
import logging
import sys

from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.table import Table

from errlocal.analyzer import Analyzer, ErrorAnalyzer
from errlocal.branding import console, el_print, show_final, show_hint, show_snippet
from errlocal.config import HISTORY_LIMIT, Settings
from errlocal.context import extract_error_context
from errlocal.disclosure import advance_and_persist, current_disclosure
from errlocal.env_loader import is_debug_enabled, load_env
from errlocal.exceptions import (
    AnalyzerError,
    BackendError,
    CommandNotFoundError,
    InvalidFixActionError,
    TranslationError,
)
from errlocal.fix_applicator import apply_fix
from errlocal.log_backend import LogBackend, UrBackendClient, build_record, recent_records
from errlocal.runner import run_command
from errlocal.state import Analysis, SessionState, StateStore
from errlocal.translator import LingoTranslator, Translator, localize_analysis

logger = logging.getLogger(__name__)

EXIT_COMMAND_NOT_FOUND = 127


def normalize_exit_code(code: int) -> int:
    """Map a child's return code to a shell-style exit status."""
    if code < 0:
        # killed by signal N
        return 128 + abs(code)
    return code


def split_trailing_lang(args: list[str]) -> tuple[list[str], str | None]:
    """Pull a trailing ``--lang <locale>`` off the wrapped command's arguments."""
    if args and args[-1].startswith("--lang="):
        return args[:-1], args[-1].split("=", 1)[1] or None
    if len(args) >= 2 and args[-2] == "--lang":
        return args[:-2], args[-1]
    return args, None


class ErrLocalCLI:
    def __init__(
        self,
        settings: Settings | None = None,
        store: StateStore | None = None,
        analyzer: Analyzer | None = None,
        translator: Translator | None = None,
        backend: LogBackend | None = None,
    ):
        self.settings = settings or Settings.from_env()
        self.store = store or StateStore(filename=self.settings.state_filename)
        self._analyzer = analyzer
        self._translator = translator
        self._backend = backend

    # ------------------------------------------------------------ Collaborators
    def _get_analyzer(self) -> Analyzer:
        if self._analyzer is None:
            self._analyzer = ErrorAnalyzer(
                self.settings.api_key,
                provider=self.settings.provider,
                model=self.settings.model,
                timeout=self.settings.request_timeout,
            )
        return self._analyzer

    def _get_translator(self) -> Translator:
        if self._translator is None:
            self._translator = LingoTranslator(
                self.settings.translator_api_key,
                api_url=self.settings.translator_url,
                timeout=self.settings.request_timeout,
            )
        return self._translator

    def _get_backend(self) -> LogBackend:
        if self._backend is None:
            self._backend = UrBackendClient(
                self.settings.backend_api_key,
                base_url=self.settings.backend_url,
                collection=self.settings.backend_collection,
                timeout=self.settings.request_timeout,
            )
        return self._backend

    def _load_state(self) -> SessionState | None:
        state = self.store.load()
        if state is None:
            el_print("No active error state found. Run a command first.", "error")
        return state

    # ------------------------------------------------------------------ Output
    def _show_disclosure(self, state: SessionState) -> None:
        disclosure = current_disclosure(state)
        if disclosure.kind == "hint":
            show_hint(disclosure.index, disclosure.text)
        else:
            show_final(disclosure.text or "No further explanation available.")

    def _localize(self, analysis: Analysis, lang: str) -> Analysis:
        """Translate an analysis, falling back to English on any failure."""
        try:
            el_print(f"Translating to {lang}...", "info")
            return localize_analysis(analysis, lang, self._get_translator())
        except TranslationError as e:
            el_print(f"Localization failed: {e}", "warning")
            el_print("Falling back to English.", "dim")
            return analysis

    # ---------------------------------------------------------------- Commands
    def run(
        self,
        command: str,
        args: list[str] | None = None,
        lang: str | None = None,
        interactive: bool | None = None,
    ) -> int:
        """Run a command and analyze its failure. Returns the command's exit code."""
        args = args or []
        console.print(f"[blue]Running: {escape(' '.join([command, *args]))}[/blue]")

        try:
            result = run_command(command, args)
        except CommandNotFoundError as e:
            el_print(str(e), "error")
            return EXIT_COMMAND_NOT_FOUND

        exit_code = normalize_exit_code(result.exit_code)
        if not result.failed:
            return exit_code

        console.print("[yellow]\n--- ⚠️  Wait! Analyzing error... ---\n[/yellow]")
        error_text = result.stderr or f"Command exited with code {result.exit_code}"
        lang = lang or self.settings.default_language
        try:
            state = self._analyze(result.command_line, error_text, lang)
        except AnalyzerError as e:
            el_print(f"Analysis failed: {e}", "error")
            return exit_code
        except OSError as e:
            el_print(f"Could not save error state: {e}", "error")
            return exit_code

        if interactive is None:
            interactive = sys.stdin.isatty() and sys.stdout.isatty()
        if interactive:
            self._interactive_loop(state)
        else:
            self._show_disclosure(state)
            console.print("[dim]\n(Run 'errlocal next' for more hints)[/dim]")
        return exit_code

    def _analyze(self, command_line: str, error_text: str, lang: str | None) -> SessionState:
        code_context = extract_error_context(error_text)
        if code_context is not None:
            location = f"{code_context.file_path}:{code_context.line_number}"
            console.print(f"[dim]Found error location: {escape(location)}[/dim]")
            if is_debug_enabled():
                show_snippet(code_context.file_path, code_context.code_snippet)

        with console.status("[cyan]Thinking...[/cyan]"):
            analysis = self._get_analyzer().analyze(error_text, command_line, code_context)

        if lang:
            analysis = self._localize(analysis, lang)

        state = SessionState(command=command_line, error=error_text, analysis=analysis)
        self.store.save(state)
        logger.debug("Saved new session to %s", self.store.path)
        return state

    def _interactive_loop(self, state: SessionState) -> None:
        """Menu shown after a failed run when attached to a terminal."""
        self._show_disclosure(state)
        while True:
            choices = ["n", "q", "s"]
            labels = ["[n]ext hint", "[s]ync"]
            if state.analysis.fix_action is not None:
                choices.append("f")
                labels.append("apply [f]ix")
            labels.append("[q]uit")

            choice = Prompt.ask(
                f"[bold]{escape(' · '.join(labels))}[/bold]", choices=choices, default="n"
            )
            if choice == "q":
                break
            if choice == "n":
                state = advance_and_persist(state, self.store)
                self._show_disclosure(state)
            elif choice == "f":
                self._apply_stored_fix(state, assume_yes=False)
            elif choice == "s":
                self.sync()
                state = self.store.load() or state

    def next(self) -> int:
        state = self._load_state()
        if state is None:
            return 1
        state = advance_and_persist(state, self.store)
        self._show_disclosure(state)
        return 0

    def show(self) -> int:
        state = self._load_state()
        if state is None:
            return 1
        console.print(f"[dim]Last command: {escape(state.command)}[/dim]")
        self._show_disclosure(state)
        return 0

    def fix(self, assume_yes: bool = False) -> int:
        state = self._load_state()
        if state is None:
            return 1
        return 0 if self._apply_stored_fix(state, assume_yes) else 1

    def _apply_stored_fix(self, state: SessionState, assume_yes: bool) -> bool:
        fix_action = state.analysis.fix_action
        if fix_action is None:
            el_print("No automatic fix is available for this error.", "warning")
            return False

        location = f"{fix_action.file_path}:{fix_action.line_number}"
        console.print(f"[bold]Proposed fix for {escape(location)}[/bold]")
        if fix_action.description:
            console.print(f"[dim]{escape(fix_action.description)}[/dim]")
        console.print(f"[green]+ {escape((fix_action.code or '').strip())}[/green]")

        if not assume_yes and not Confirm.ask("Apply this fix?", default=False):
            el_print("Fix not applied.", "dim")
            return False

        try:
            applied = apply_fix(fix_action)
        except InvalidFixActionError as e:
            el_print(f"Cannot apply fix: {e}", "error")
            return False

        if applied:
            el_print(f"Applied fix to {fix_action.file_path}:{fix_action.line_number}", "success")
        else:
            el_print(
                f"Failed to apply fix to {fix_action.file_path}:{fix_action.line_number}", "error"
            )
        return applied

    def sync(self) -> int:
        state = self._load_state()
        if state is None:
            return 1
        if state.log_id:
            el_print(f"Already synced (log id {state.log_id}).", "info")
            return 0

        try:
            with console.status("[cyan]Syncing error log...[/cyan]"):
                log_id = self._get_backend().create(build_record(state))
        except BackendError as e:
            el_print(f"Sync failed: {e}", "error")
            return 1

        state.log_id = log_id
        self.store.save(state)
        el_print(f"Synced error log ({log_id}).", "success")
        return 0

    def history(self, limit: int = HISTORY_LIMIT) -> int:
        try:
            records = self._get_backend().list()
        except BackendError as e:
            el_print(f"Could not fetch history: {e}", "error")
            return 1

        records = recent_records(records, limit)
        if not records:
            el_print("No synced errors yet.", "info")
            return 0

        table = Table(title="Recent errors", show_lines=False)
        table.add_column("When", style="dim")
        table.add_column("Command", style="cyan")
        table.add_column("Type")
        table.add_column("Status")
        for record in records:
            status = record.get("status") or "OPEN"
            status_style = "green" if status == "SOLVED" else "yellow"
            table.add_row(
                escape(str(record.get("timestamp", ""))[:19]),
                escape(str(record.get("command", ""))),
                escape(str(record.get("errorType", ""))),
                f"[{status_style}]{escape(str(status))}[/{status_style}]",
            )
        console.print(table)
        return 0

    def solved(self, note: str = "") -> int:
        state = self._load_state()
        if state is None:
            return 1
        if not state.log_id:
            el_print("This error has not been synced. Run 'errlocal sync' first.", "warning")
            return 1

        try:
            self._get_backend().update(state.log_id, {"status": "SOLVED", "solution": note})
        except BackendError as e:
            el_print(f"Could not mark as solved: {e}", "error")
            return 1

        state.log_id = None
        self.store.save(state)
        el_print("Marked as solved. Nice work!", "success")
        return 0


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    for noisy in ("openai", "anthropic", "httpx", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="errlocal",
        description="Run a command and explain its errors with progressive AI hints",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  errlocal run npm start
  errlocal run python app.py --lang es
  errlocal next
  errlocal fix
  errlocal sync
  errlocal history
  errlocal solved "forgot to await the promise"

Environment Variables:
  GROQ_API_KEY        Groq API key (default provider)
  OPENAI_API_KEY      OpenAI API key
  ANTHROPIC_API_KEY   Anthropic API key
  LINGO_API_KEY       Lingo.dev API key for --lang
  URBACKEND_API_KEY   urBackend API key for sync/history/solved
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run a command and analyze its errors")
    run_parser.add_argument("--lang", help="Target language for hints (e.g. hi, es, fr)")
    run_parser.add_argument(
        "--no-interactive", action="store_true", help="Print the first hint and exit"
    )
    run_parser.add_argument("cmd", metavar="command", help="Command to run")
    run_parser.add_argument("args", nargs=argparse.REMAINDER, help="Arguments for the command")

    subparsers.add_parser("next", help="Show the next hint for the last error")
    subparsers.add_parser("show", help="Show the current hint again")

    fix_parser = subparsers.add_parser("fix", help="Apply the suggested one-line fix")
    fix_parser.add_argument("--yes", "-y", action="store_true", help="Apply without asking")

    subparsers.add_parser("sync", help="Save the last error to the cloud log")
    subparsers.add_parser("history", help="Show the last 5 synced errors")

    solved_parser = subparsers.add_parser("solved", help="Mark the synced error as solved")
    solved_parser.add_argument("note", nargs="*", help="How you solved it")
    return parser


def main(argv: list[str] | None = None) -> int:
    # Load .env files before anything reads API keys from os.environ
    load_env()

    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose or is_debug_enabled())

    if not args.command:
        parser.print_help()
        return 1

    try:
        cli = ErrLocalCLI()
        if args.command == "run":
            cmd_args, trailing_lang = split_trailing_lang(args.args)
            return cli.run(
                args.cmd,
                cmd_args,
                lang=args.lang or trailing_lang,
                interactive=False if args.no_interactive else None,
            )
        elif args.command == "next":
            return cli.next()
        elif args.command == "show":
            return cli.show()
        elif args.command == "fix":
            return cli.fix(assume_yes=args.yes)
        elif args.command == "sync":
            return cli.sync()
        elif args.command == "history":
            return cli.history()
        elif args.command == "solved":
            return cli.solved(" ".join(args.note))
        else:
            parser.print_help()
            return 1
    except KeyboardInterrupt:
        print("\n❌ Operation cancelled by user", file=sys.stderr)
        return 130
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
