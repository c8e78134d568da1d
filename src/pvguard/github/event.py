#!/usr/bin/env python3
"""
PVGUARD EVENT LOADER
--------------------
Reads the webhook payload that triggered the run and turns it into a
PushEvent. Anything that is not a usable push is rejected before the
reconciler does any work.

Author: PVGuard Team
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict

from pvguard.core.errors import EventError
from pvguard.core.models import Commit, PushEvent

logger = logging.getLogger("pvguard.event")

SUPPORTED_EVENT = "push"


def load_push_event(event_name: str, event_path: str) -> PushEvent:
    """Validates the event name, reads the JSON payload and parses it."""
    if event_name != SUPPORTED_EVENT:
        raise EventError('This action only supports "push" events')

    path = Path(event_path)
    try:
        payload = json.loads(path.read_text(encoding='utf-8'))
    except FileNotFoundError as e:
        raise EventError(f"The event payload {path} does not exist") from e
    except (OSError, json.JSONDecodeError) as e:
        raise EventError(f"The event payload {path} could not be read: {e}") from e

    return parse_push_event(event_name, payload)


def parse_push_event(event_name: str, payload: Any) -> PushEvent:
    if event_name != SUPPORTED_EVENT:
        raise EventError('This action only supports "push" events')
    if not isinstance(payload, dict):
        raise EventError("The push event payload is not an object")

    head_commit = payload.get("head_commit")
    if not head_commit:
        raise EventError("The push event has no head commit")

    raw_commits = payload.get("commits")
    if not raw_commits:
        raise EventError("The push event has no commits")

    commits = [_parse_commit(raw, index) for index, raw in enumerate(raw_commits)]
    push = PushEvent(
        ref=payload.get("ref", ""),
        head_commit_id=head_commit.get("id", "") if isinstance(head_commit, dict) else str(head_commit),
        commits=commits,
    )
    logger.debug(f"Loaded push to {push.ref or '<unknown ref>'} with {len(commits)} commit(s)")
    return push


def _parse_commit(raw: Dict[str, Any], index: int) -> Commit:
    if not isinstance(raw, dict):
        raise EventError(f"Commit #{index + 1} of the push event is not an object")
    if not raw.get("id"):
        raise EventError(f"Commit #{index + 1} of the push event has no id")

    message = raw.get("message") or ""
    if not isinstance(message, str):
        raise EventError(f"The message of commit {raw['id']} is not a string")

    removed = raw.get("removed") or []
    if not isinstance(removed, list):
        raise EventError(f"The removed files of commit {raw['id']} are not a list")
    if not all(isinstance(path, str) for path in removed):
        raise EventError(f"The removed files of commit {raw['id']} are not all strings")

    return Commit(
        id=raw["id"],
        message=message,
        tree_id=raw.get("tree_id"),
        removed=list(removed),
    )
