"""Interactive UI components for picking people."""

import logging
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from .models import Person

logger = logging.getLogger(__name__)


def fuzzy_match(query: str, text: str) -> bool:
    """
    Fuzzy match: all characters in query must appear in order in text.

    Example:
        query="ali" matches "Alice"
        query="bsm" matches "Bob Smith"
    """
    query_idx = 0
    for char in text:
        if query_idx < len(query) and char == query[query_idx]:
            query_idx += 1
    return query_idx == len(query)


class PersonCompleter(Completer):
    """Fuzzy search completer for people."""

    def __init__(self, people: list[Person]):
        """Initialize the completer with the people to choose from."""
        self.people = people
        self.name_to_id = {person.name: person.id for person in people}

    def get_completions(self, document: Document, complete_event: Any):
        """Get fuzzy-matched completions."""
        query = document.text.lower()

        for person in self.people:
            if not query or fuzzy_match(query, person.name.lower()):
                yield Completion(
                    text=person.name,
                    start_position=-len(document.text),
                    display=person.name,
                )


def select_person_interactive(people: list[Person], label: str) -> str | None:
    """
    Interactive person selection with fuzzy search.

    Args:
        people: People to choose from
        label: Prompt label, e.g. "Debtor"

    Returns:
        Selected person id, or None to cancel
    """
    if not people:
        print("\nNo people to choose from")
        return None

    completer = PersonCompleter(people)
    session: PromptSession[str] = PromptSession(completer=completer)

    print("   Type to search, press Enter to confirm, Ctrl+C to cancel\n")

    try:
        while True:
            result = session.prompt(f"{label}: ", complete_while_typing=True)

            if not result:
                return None

            person_id = completer.name_to_id.get(result)
            if person_id:
                logger.info(f"User selected {label.lower()}: {result}")
                return person_id

            print("Unknown person. Please pick from the list or press Tab to complete.")

    except KeyboardInterrupt:
        print("\nCancelled")
        return None
    except EOFError:
        return None


def confirm(message: str) -> bool:
    """Simple yes/no confirmation, defaulting to no."""
    response = input(f"{message} [y/N] ").strip().lower()
    return response in ("y", "yes")
