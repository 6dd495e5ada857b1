"""Flash messages carried across a redirect in the cookie session."""

from typing import Iterable, List, MutableMapping

from client_registry.controller import FlashMessage

FLASH_KEY = "_flashes"


def flash(session: MutableMapping[str, object], messages: Iterable[FlashMessage]) -> None:
    """Queue messages for the next rendered page."""
    queued = list(session.get(FLASH_KEY) or [])
    queued.extend([message.category, message.text] for message in messages)
    if queued:
        session[FLASH_KEY] = queued


def pop_flashes(session: MutableMapping[str, object]) -> List[FlashMessage]:
    """Remove and return all queued messages."""
    queued = session.pop(FLASH_KEY, None) or []
    return [FlashMessage(category, text) for category, text in queued]
