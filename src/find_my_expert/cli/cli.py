"""Command-line interface for Find My Expert."""

import asyncio
import logging
from pathlib import Path

import click

from find_my_expert.config import get_settings
from find_my_expert.constants import INITIAL_SUGGESTIONS, THEMES
from find_my_expert.errors import ExpertSearchError
from find_my_expert.models.expert import Expert
from find_my_expert.models.search import Filters, SortOrder
from find_my_expert.services.contact import draft_contact
from find_my_expert.services.expert_search import SearchResult, SearchSession, get_trending_topics
from find_my_expert.services.interview import InterviewSession
from find_my_expert.utils.export import csv_filename, experts_to_csv, transcript_filename
from find_my_expert.utils.preferences import PreferencesStore


def _load_preferences() -> PreferencesStore:
    return PreferencesStore(get_settings().preferences_path).load()


def _filter_options(func):
    for name in ("zip-code", "state", "country", "keywords", "department", "university"):
        func = click.option(f"--{name}", default="", help=f"Filter by {name.replace('-', ' ')}")(func)
    return func


THEME_COLORS = {"light": "blue", "dark": "cyan"}


def _print_expert(index: int, expert: Expert, favorite: bool, color: str) -> None:
    star = " *" if favorite else ""
    name = click.style(expert.name, fg=color, bold=True)
    click.echo(f"  {index}. {name}{star} [{expert.id}]")
    click.echo(f"     {expert.department}, {expert.university}")
    click.echo(f"     {expert.expertise}")
    if expert.justification:
        click.echo(f"     Why: {expert.justification}")


def _print_result(session: SearchSession, result: SearchResult) -> None:
    if result.error:
        click.echo(result.error, err=True)
    color = THEME_COLORS[session.preferences.theme] if session.preferences else "blue"
    experts = session.sorted_experts()
    for i, expert in enumerate(experts, 1):
        _print_expert(i, expert, session.is_favorite(expert.id), color)
    if result.sources:
        click.echo("\nSources:")
        for source in result.sources:
            click.echo(f"  - {source.title}: {source.uri}")
    if result.suggestions:
        click.echo("\nRefine your search:")
        for suggestion in result.suggestions:
            click.echo(f"  - {suggestion}")


async def _search_and_pick(session: SearchSession, subject: str, index: int) -> Expert:
    result = await session.search(subject)
    if result is None or not result.experts:
        raise click.ClickException(result.error if result and result.error else "No experts found.")
    experts = session.sorted_experts()
    if not 1 <= index <= len(experts):
        raise click.BadParameter(f"choose an expert between 1 and {len(experts)}", param_hint="--expert")
    return experts[index - 1]


@click.group()
@click.version_option(package_name="find-my-expert")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """Find My Expert: discover academic experts for any subject."""
    level = "DEBUG" if verbose or get_settings().debug else get_settings().log_level
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("subject", required=False)
@_filter_options
@click.option(
    "-s",
    "--sort",
    type=click.Choice([o.value for o in SortOrder]),
    default=SortOrder.RELEVANCE.value,
    show_default=True,
    help="Sort order for the results",
)
@click.option("--csv", "csv_path", type=click.Path(path_type=Path), help="Export results to CSV")
@click.option("--details", is_flag=True, help="Also fetch publications and projects")
def search(
    subject: str | None,
    university: str,
    department: str,
    keywords: str,
    country: str,
    state: str,
    zip_code: str,
    sort: str,
    csv_path: Path | None,
    details: bool,
):
    """Search for experts in SUBJECT."""
    if not subject:
        click.echo("Try one of these subjects:")
        for suggestion in INITIAL_SUGGESTIONS:
            click.echo(f"  - {suggestion}")
        return

    filters = Filters(
        university=university,
        department=department,
        keywords=keywords,
        country=country,
        state=state,
        zip_code=zip_code,
    )
    session = SearchSession(_load_preferences())

    async def run() -> None:
        click.echo(f"Searching experts in: {subject}")
        result = await session.search(subject, filters)
        if result is None:
            return
        session.sort_order = SortOrder(sort)
        _print_result(session, result)

        if details:
            for expert in session.sorted_experts():
                click.echo(f"\n{expert.name}")
                try:
                    expert_details = await session.get_details(expert.id)
                except ExpertSearchError as e:
                    click.echo(f"  {e.message}", err=True)
                    continue
                for publication in expert_details.publications:
                    click.echo(f"  [pub] {publication}")
                for project in expert_details.projects:
                    click.echo(f"  [project] {project}")

        if csv_path is not None and session.experts:
            target = csv_path / csv_filename(subject) if csv_path.is_dir() else csv_path
            target.write_text(experts_to_csv(session.sorted_experts()), encoding="utf-8")
            click.echo(f"\nResults saved to: {target}")

    asyncio.run(run())


@main.command()
def trending():
    """Show trending research topics."""
    topics = asyncio.run(get_trending_topics())
    if not topics:
        click.echo("No trending topics available right now.", err=True)
    for topic in topics:
        click.echo(f"  - {topic}")


@main.command()
@click.argument("subject")
@click.option("-e", "--expert", "index", type=int, default=1, show_default=True, help="Result number to interview")
@click.option("-t", "--transcript", type=click.Path(path_type=Path), help="Save the transcript here")
def interview(subject: str, index: int, transcript: Path | None):
    """Interview an AI simulation of an expert found for SUBJECT."""
    session = SearchSession(_load_preferences())

    async def run() -> InterviewSession:
        expert = await _search_and_pick(session, subject, index)
        try:
            expert_details = await session.get_details(expert.id)
        except ExpertSearchError as e:
            raise click.ClickException(e.message) from e

        chat = InterviewSession(expert, expert_details)
        click.echo(f"\nInterviewing Dr. {expert.name} (type 'quit' to finish)\n")
        suggestions_task = asyncio.ensure_future(chat.load_suggestions())
        async for delta in chat.start():
            click.echo(delta, nl=False)
        click.echo("\n")

        for question in await suggestions_task:
            click.echo(f"  ? {question}")

        while True:
            message = await asyncio.to_thread(click.prompt, "You", default="", show_default=False)
            if message.strip().lower() in ("quit", "exit"):
                break
            async for delta in chat.send_message(message):
                click.echo(delta, nl=False)
            click.echo("\n")

        chat.close()
        return chat

    chat = asyncio.run(run())
    if transcript is not None and chat.messages:
        target = transcript / transcript_filename(chat.expert) if transcript.is_dir() else transcript
        target.write_text(chat.transcript(), encoding="utf-8")
        click.echo(f"Transcript saved to: {target}")


@main.command()
@click.argument("subject")
@click.option("-e", "--expert", "index", type=int, default=1, show_default=True, help="Result number to contact")
def contact(subject: str, index: int):
    """Draft a contact email to an expert found for SUBJECT."""
    session = SearchSession()
    expert = asyncio.run(_search_and_pick(session, subject, index))
    draft = draft_contact(expert, subject)
    click.echo("Note: the address is a placeholder; verify the expert's real contact details.\n")
    click.echo(f"To: {draft.email}")
    click.echo(f"Subject: {draft.subject}\n")
    click.echo(draft.body)


@main.command()
@click.argument("expert_id")
def favorite(expert_id: str):
    """Toggle EXPERT_ID in your favourites."""
    is_favorite = _load_preferences().toggle_favorite(expert_id)
    click.echo(f"{'Added' if is_favorite else 'Removed'} {expert_id}")


@main.command()
def favorites():
    """List favourite expert ids."""
    for expert_id in _load_preferences().favorites:
        click.echo(expert_id)


@main.command()
@click.argument("value", required=False, type=click.Choice(THEMES))
def theme(value: str | None):
    """Show or set the display theme."""
    preferences = _load_preferences()
    if value:
        preferences.set_theme(value)
    click.echo(preferences.theme)


if __name__ == "__main__":
    main()
