"""Interactive CLI application."""
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from flashcard_hub.auth import IdentityProvider, InMemoryAuth, SupabaseAuth
from flashcard_hub.config import Settings, get_settings
from flashcard_hub.dashboard import (
    build_user_stats, format_study_time, get_accuracy_color, get_accuracy_label, local_stats,
    session_chart_rows,
)
from flashcard_hub.generator import FlashcardGenerator, add_generated_cards, generate_cards_from_content
from flashcard_hub.log import configure_logging
from flashcard_hub.models import DIFFICULTIES, CardDraft, Stage, Status, UserStats
from flashcard_hub.remote import InMemoryRemote, RemoteError, RemoteStore, SupabaseRemote
from flashcard_hub.sessions import SessionRecorder
from flashcard_hub.store import FlashcardStore, select_stage
from flashcard_hub.sync import SyncAdapter

logger = logging.getLogger(__name__)
console = Console()

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """Raised when the user leaves a practice session early."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


@dataclass
class Services:
    store: FlashcardStore
    auth: IdentityProvider
    remote: RemoteStore
    sync: SyncAdapter
    recorder: SessionRecorder
    generator: Optional[FlashcardGenerator] = None


def _notify(message: str) -> None:
    console.print(f"[green]{message}[/green]")


def build_services(settings: Settings) -> Services:
    store = FlashcardStore(db_path=settings.db_path)
    if settings.remote_enabled:
        remote = SupabaseRemote(settings.supabase_url, settings.supabase_anon_key,
                                timeout=settings.request_timeout)
        auth = SupabaseAuth(settings.supabase_url, settings.supabase_anon_key,
                            timeout=settings.request_timeout)
        generator = FlashcardGenerator(settings.supabase_url, settings.supabase_anon_key,
                                       function=settings.generate_function)
        # Requests made during reconciliation must carry the new session token
        auth.subscribe(lambda user: remote.set_access_token(auth.access_token))
    else:
        remote = InMemoryRemote()
        auth = InMemoryAuth()
        generator = None
    sync = SyncAdapter(store, remote, settle_seconds=settings.sync_settle_seconds, notify=_notify)
    auth.subscribe(sync.on_identity_change)
    recorder = SessionRecorder(
        store, remote, user_id=lambda: auth.current_user.id if auth.current_user else None,
    )
    return Services(store, auth, remote, sync, recorder, generator)


def show_welcome(services: Services):
    user = services.auth.current_user
    who = f"Welcome, {user.email}" if user else "Sign in to save your progress and access the dashboard"
    console.print(Panel(
        f"[bold]Flashcard Hub[/bold]\n[dim]{who}[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("add", "Create a flashcard"),
        ("generate", "Generate flashcards with AI"),
        ("organize", "Browse cards by subject and week"),
        ("practice", "Practice due cards"),
        ("review", "Next review time"),
        ("dashboard", "Streak, points and progress"),
        ("login", "Sign in"),
        ("signup", "Create an account"),
        ("logout", "Sign out"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def run_practice_session(services: Services, cards: list) -> tuple[int, int]:
    store = services.store
    if not cards:
        console.print("[yellow]No flashcards due right now![/yellow]")
        return 0, 0
    store.reset_session()
    store.set_stage(Stage.PRACTICE)
    started = time.monotonic()
    console.print(f"\n[bold]Practice Session[/bold] ({len(cards)} cards, 'q' to stop)\n")
    try:
        for i, card in enumerate(cards, 1):
            star = " [yellow]*[/yellow]" if card.is_starred else ""
            console.print(Panel(card.question, title=f"Card {i}/{len(cards)}{star}", border_style="cyan"))
            session_prompt("[dim]Press Enter to reveal answer[/dim]", default="")
            console.print(Panel(card.answer, border_style="green"))
            answer = session_prompt("Did you get it right?", choices=["y", "n", "s", "q"])
            if answer == "s":
                store.toggle_star(card.id)
                answer = session_prompt("Did you get it right?", choices=["y", "n", "q"])
            if answer == "y":
                store.mark_card_correct(card.id)
                console.print("[green]+30 points[/green]")
            else:
                store.mark_card_incorrect(card.id)
                console.print("[red]-10 points[/red]")
            store.next_card()
            console.print()
    except SessionExitRequested:
        console.print("[dim]Session stopped.[/dim]")

    tally = store.session
    if tally.total:
        store.update_streak()
        duration = max(1, round((time.monotonic() - started) / 60))
        result = services.recorder.save_current_session(duration)
        if result.status is Status.REMOTE_ERROR:
            console.print("[red]Could not save this session to your account.[/red]")
        upcoming = [c.next_review for c in store.cards if c.next_review]
        if upcoming:
            store.set_next_review_time(min(upcoming))
        store.set_stage(Stage.REVIEW_TIMER)
        pct = tally.correct / tally.total * 100
        console.print(f"[bold]Score: {tally.correct}/{tally.total} ({pct:.0f}%)[/bold]\n")
    return tally.correct, tally.total


def cmd_add(services: Services):
    question = Prompt.ask("Question").strip()
    answer = Prompt.ask("Answer").strip()
    if not question or not answer:
        console.print("[red]Question and answer are required.[/red]")
        return
    subject = Prompt.ask("Subject", default="").strip() or None
    week = Prompt.ask("Week", default="").strip() or None
    difficulty = Prompt.ask("Difficulty", choices=[*DIFFICULTIES, "none"], default="none")
    difficulty = None if difficulty == "none" else difficulty
    services.store.add_card(CardDraft(question, answer, subject=subject, week=week, difficulty=difficulty))
    services.store.set_stage(Stage.ORGANIZE)
    console.print("[green]Card added![/green]")


def cmd_generate(services: Services):
    if services.generator is None:
        console.print("[yellow]AI generation needs a Supabase project; adding the sample deck instead.[/yellow]")
        count = generate_cards_from_content(services.store)
    else:
        subject = Prompt.ask("Subject", default="General")
        source = Prompt.ask("File path or video URL")
        if source.startswith(("http://", "https://")):
            cards = services.generator.generate(subject, video_url=source)
        elif Path(source).exists():
            cards = services.generator.generate(subject, file_path=source)
        else:
            console.print(f"[red]File not found: {source}[/red]")
            return
        week = Prompt.ask("Week", default="").strip() or None
        count = add_generated_cards(services.store, cards, week=week)
    services.store.set_stage(Stage.ORGANIZE)
    console.print(f"[green]Added {count} cards.[/green]")


def cmd_organize(services: Services):
    store = services.store
    if not len(store):
        console.print("[yellow]No cards yet. Use 'add' or 'generate'.[/yellow]")
        return
    table = Table(title="Your Flashcards")
    table.add_column("#", justify="right")
    table.add_column("Question")
    table.add_column("Subject", style="cyan")
    table.add_column("Week")
    table.add_column("Difficulty")
    table.add_column("Score", justify="right")
    for i, card in enumerate(store.cards, 1):
        star = "* " if card.is_starred else ""
        table.add_row(
            str(i), star + card.question, card.subject or "General", card.week or "",
            card.difficulty or "", f"{card.correct_count}/{card.correct_count + card.incorrect_count}",
        )
    console.print(table)
    action = Prompt.ask("Action", choices=["star", "delete", "done"], default="done")
    if action == "done":
        return
    index = Prompt.ask("Card number")
    if not index.isdigit() or not 1 <= int(index) <= len(store):
        console.print("[red]No such card.[/red]")
        return
    card = store.cards[int(index) - 1]
    if action == "star":
        store.toggle_star(card.id)
    else:
        store.delete_card(card.id)
    console.print("[green]Done.[/green]")


def cmd_practice(services: Services):
    store = services.store
    mode = Prompt.ask("Practice", choices=["due", "all", "starred"], default="due")
    if mode == "all":
        cards = store.cards
    elif mode == "starred":
        cards = store.starred_cards()
    else:
        cards = store.due_cards()
    run_practice_session(services, cards)


def cmd_review(services: Services):
    when = services.store.next_review_time
    if when is None:
        console.print("[dim]No review scheduled yet. Practice some cards first.[/dim]")
        return
    console.print(f"Next review: [bold]{when.astimezone():%Y-%m-%d %H:%M}[/bold]")
    due = len(services.store.due_cards())
    console.print(f"Cards due now: [bold]{due}[/bold]")


def cmd_dashboard(services: Services):
    store = services.store
    progress = store.progress
    stats = local_stats(store)
    color = get_accuracy_color(stats["accuracy"])

    console.print(Panel(
        f"Level [bold]{progress.level}[/bold]  |  {progress.points} points  |  "
        f"Streak [bold]{progress.streak}[/bold] (best {progress.longest_streak})",
        title="Dashboard", border_style="blue",
    ))
    console.print(f"\n  Cards: [bold]{stats['total_cards']}[/bold]  |  "
                  f"Mastered: [bold]{stats['cards_mastered']}[/bold]  |  "
                  f"Due: [bold]{stats['due']}[/bold]  |  "
                  f"Starred: [bold]{stats['starred']}[/bold]")
    console.print(f"  Accuracy: [{color}]{stats['accuracy']}% {get_accuracy_label(stats['accuracy'])}[/{color}]")
    console.print(f"  Study time: {format_study_time(progress.total_study_time_minutes)}")

    user = services.auth.current_user
    if not user:
        return
    try:
        record = services.remote.fetch_user_stats(user.id)
        sessions = services.remote.fetch_study_sessions(user.id, limit=7)
    except RemoteError as exc:
        logger.error("Error loading dashboard data: %s", exc)
        console.print("[red]Could not load your account progress.[/red]")
        return
    if record:
        account = UserStats.from_record({**record, "user_id": user.id})
    else:
        account = build_user_stats(store, user.id)
    console.print(f"\n  Account: level [bold]{account.level}[/bold]  |  {account.points} points  |  "
                  f"{account.cards_mastered}/{account.total_cards} mastered  |  "
                  f"Streak {account.current_streak} (best {account.longest_streak})  |  "
                  f"{format_study_time(account.total_study_time_minutes)}")
    if not record:
        console.print("  [dim]Showing this device's progress; your account has no stats yet.[/dim]")
    if not sessions:
        console.print("\n[dim]No study sessions yet. Start practicing to see your progress![/dim]")
        return
    table = Table(title="Recent Study Sessions")
    table.add_column("Session")
    table.add_column("Correct", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Duration", justify="right")
    for session, row in zip(sessions, session_chart_rows(sessions)):
        table.add_row(
            row["session"], f"{session['correct_answers']}/{session['total_cards']}",
            f"{row['accuracy']}%", f"{row['duration']}min",
        )
    console.print(table)


def cmd_login(services: Services):
    email = Prompt.ask("Email")
    password = Prompt.ask("Password", password=True)
    result = services.auth.sign_in(email, password)
    if not result.ok:
        console.print(f"[red]{result.error}[/red]")
        return
    console.print("[green]Successfully signed in![/green]")


def cmd_signup(services: Services):
    display_name = Prompt.ask("Full name")
    email = Prompt.ask("Email")
    password = Prompt.ask("Password", password=True)
    result = services.auth.sign_up(email, password, display_name)
    if not result.ok:
        console.print(f"[red]{result.error}[/red]")
        return
    console.print("[green]Check your email to confirm your account![/green]")


def cmd_logout(services: Services):
    services.auth.sign_out()
    console.print("[dim]Signed out.[/dim]")


COMMANDS = {
    "add": cmd_add,
    "generate": cmd_generate,
    "organize": cmd_organize,
    "practice": cmd_practice,
    "review": cmd_review,
    "dashboard": cmd_dashboard,
    "login": cmd_login,
    "signup": cmd_signup,
    "logout": cmd_logout,
}

DEFAULT_COMMAND = {
    Stage.SETUP: "add",
    Stage.ORGANIZE: "practice",
    Stage.PRACTICE: "practice",
    Stage.REVIEW_TIMER: "review",
}


def main():
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_file)
    services = build_services(settings)

    show_welcome(services)

    while True:
        show_menu()
        default = DEFAULT_COMMAND[select_stage(services.store)]
        choice = Prompt.ask("\n[bold]>[/bold]", default=default).strip().lower()
        if choice in ("quit", "exit", "q"):
            console.print("[dim]Happy studying![/dim]")
            break
        command = COMMANDS.get(choice)
        if command is None:
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            command(services)
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.exception("Command %s failed", choice)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
