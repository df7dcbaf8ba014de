"""Interactive terminal front end."""
import logging
import sqlite3
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt, Confirm
from rich.table import Table

from qq_cards.config import load_config
from qq_cards.controller import SessionQuestionController
from qq_cards.db import Datastores, open_datastores
from qq_cards.models import FilterState, QuestionState
from qq_cards.notes import MAX_NOTE_LENGTH, NoteDraft, NoteStore
from qq_cards.preferences import PreferenceStore
from qq_cards.progress import ProgressStore
from qq_cards.questions import QuestionStore
from qq_cards.seed import build_corpus, is_built, load_corpus
from qq_cards.sessions import SessionError, SessionStore

console = Console()
logger = logging.getLogger(__name__)

FILTER_STYLE = {
    FilterState.NONE: "dim",
    FilterState.INCLUDE: "green",
    FilterState.EXCLUDE: "red",
}

SESSION_ERRORS = {
    SessionError.EMPTY_NAME: "Session name cannot be empty.",
    SessionError.INVALID_NAME: "Session name cannot contain control characters.",
    SessionError.DUPLICATE_NAME: "A session with that name already exists.",
    SessionError.STORAGE_FAILED: "Could not save the session.",
}


def show_welcome():
    console.print(Panel(
        "[bold]QQ Cards[/bold]\n[dim]Conversation prompts, one card at a time[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_card_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("skip", "Next question"),
        ("done", "Mark completed and move on"),
        ("fav", "Toggle favorite"),
        ("hide", "Toggle hidden"),
        ("filter fav", "Cycle favorites filter"),
        ("filter <tag>", "Cycle a tag filter"),
        ("tags", "Show tag filters"),
        ("note", "Write a note for this question"),
        ("back", "Back to sessions"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def render_card(state: QuestionState) -> None:
    markers = []
    if state.is_favorite:
        markers.append("[yellow]★ favorite[/yellow]")
    if state.is_hidden:
        markers.append("[red]hidden[/red]")
    subtitle = f"Completed {state.progress_text}"
    if state.favorites_filter is not FilterState.NONE:
        subtitle += f"  |  favorites: {state.favorites_filter.value}"
    active = [f"{tag}:{s.value}" for tag, s in state.tag_filters if s is not FilterState.NONE]
    if active:
        subtitle += "  |  tags: " + ", ".join(active)
    body = state.question_text
    if markers:
        body += "\n\n" + "  ".join(markers)
    border = "cyan" if state.has_question else "yellow"
    console.print(Panel(body, title=f"#{state.question_id}", subtitle=subtitle, border_style=border))


def render_tags(state: QuestionState) -> None:
    table = Table(title="Filters")
    table.add_column("Filter", style="cyan")
    table.add_column("State")
    fav = state.favorites_filter
    table.add_row("fav", f"[{FILTER_STYLE[fav]}]{fav.value}[/{FILTER_STYLE[fav]}]")
    for tag, s in state.tag_filters:
        table.add_row(tag, f"[{FILTER_STYLE[s]}]{s.value}[/{FILTER_STYLE[s]}]")
    console.print(table)


def edit_note(notes: NoteStore, session_id: int, question_id: int) -> None:
    draft = NoteDraft(notes, session_id, question_id)
    if draft.current:
        console.print(Panel(draft.content, title="Current note", border_style="dim"))
    text = Prompt.ask(f"Note ({MAX_NOTE_LENGTH} characters max, blank to cancel)", default="")
    if not text:
        return
    if not draft.set_content(text):
        console.print(f"[red]Note is {len(text) - MAX_NOTE_LENGTH} characters too long.[/red]")
        return
    if draft.save():
        console.print(f"[green]Note saved[/green] [dim]({draft.remaining} characters left)[/dim]")
    else:
        console.print("[red]Could not save the note.[/red]")


def run_session(controller: SessionQuestionController, notes: NoteStore) -> None:
    """Card loop for one session; returns when the user goes back."""
    controller.subscribe(render_card)
    render_card(controller.snapshot())
    show_card_menu()
    while True:
        choice = Prompt.ask("\n[bold]>[/bold]", default="skip").strip()
        command, _, arg = choice.partition(" ")
        command = command.lower()
        arg = arg.strip()
        if command in ("skip", "s"):
            controller.skip()
        elif command in ("done", "d"):
            if not controller.mark_complete():
                console.print("[yellow]Nothing to complete.[/yellow]")
        elif command in ("fav", "f"):
            if not controller.toggle_favorite():
                console.print("[yellow]Could not change favorite.[/yellow]")
        elif command == "hide":
            if not controller.toggle_hidden():
                console.print("[yellow]Could not change hidden.[/yellow]")
        elif command == "filter":
            if arg in ("fav", "favorites"):
                controller.cycle_favorites_filter()
            elif not controller.cycle_tag_filter(arg):
                console.print(f"[red]Unknown tag: {arg}[/red]")
        elif command == "tags":
            render_tags(controller.snapshot())
        elif command == "note":
            state = controller.snapshot()
            if state.has_question:
                edit_note(notes, controller.session_id, state.question_id)
            else:
                console.print("[yellow]No question to attach a note to.[/yellow]")
        elif command in ("back", "b", "quit", "q"):
            return
        elif command in ("help", "?"):
            show_card_menu()
        else:
            console.print("[red]Unknown command. Try again.[/red]")


def show_sessions(sessions: SessionStore) -> list:
    listed = sessions.list_all()
    table = Table(title="Sessions")
    table.add_column("#", justify="right")
    table.add_column("Name", style="cyan")
    table.add_column("Created")
    for i, s in enumerate(listed, 1):
        table.add_row(str(i), s.name, s.creation_date[:10])
    console.print(table)
    return listed


def choose_session(sessions: SessionStore) -> Optional[int]:
    """Session menu; returns the chosen session id or None to quit."""
    while True:
        listed = show_sessions(sessions)
        choice = Prompt.ask("[bold]new / open <n> / delete <n> / quit[/bold]", default="new").strip()
        command, _, arg = choice.partition(" ")
        command = command.lower()
        if command == "new":
            name = Prompt.ask("Session name (20 characters max)")
            result = sessions.create(name)
            if result.ok:
                console.print(f"[green]Created session {result.session.name}[/green]")
                return result.session.id
            console.print(f"[red]{SESSION_ERRORS[result.error]}[/red]")
        elif command in ("open", "delete"):
            if not arg.isdigit() or not 1 <= int(arg) <= len(listed):
                console.print("[red]Pick a session number from the list.[/red]")
                continue
            session = listed[int(arg) - 1]
            if command == "open":
                return session.id
            if Confirm.ask(f"Delete session {session.name} and its progress?"):
                if not sessions.delete(session.id):
                    console.print("[red]Could not delete the session.[/red]")
        elif command in ("quit", "exit", "q"):
            return None
        else:
            console.print("[red]Unknown command. Try again.[/red]")


def ensure_corpus(master_path) -> None:
    try:
        if is_built(master_path):
            return
        console.print("[dim]Setting up for first use...[/dim]")
        build_corpus(master_path, load_corpus())
    except (OSError, sqlite3.Error, ValueError) as e:
        logger.error("Building the question corpus failed: %s", e)


def run(stores: Datastores) -> None:
    questions = QuestionStore(stores.master)
    preferences = PreferenceStore(stores.user)
    progress = ProgressStore(stores.user)
    sessions = SessionStore(stores.user)
    notes = NoteStore(stores.user)
    while True:
        session_id = choose_session(sessions)
        if session_id is None:
            console.print("[dim]Bye![/dim]")
            return
        controller = SessionQuestionController(session_id, questions, preferences, progress)
        run_session(controller, notes)


def main():
    config = load_config()
    logging.basicConfig(
        level=config.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )
    ensure_corpus(config.master_db)
    stores = open_datastores(config)
    if stores.degraded:
        console.print("[yellow]Some data could not be loaded; running in a limited mode.[/yellow]")
    show_welcome()
    try:
        run(stores)
    except KeyboardInterrupt:
        console.print("\n[dim]Bye![/dim]")
    finally:
        stores.close()


if __name__ == "__main__":
    main()
