"""
In-memory stand-ins for the GitHub collaborators, shared by the suites.
"""

from typing import Dict, List

import pytest

from pvguard.core.models import Commit, TreeEntry


class FakeTreeResolver:
    def __init__(self, trees: Dict[str, List[TreeEntry]]):
        self.trees = trees
        self.resolved: List[str] = []

    def resolve_tree(self, commit: Commit) -> List[TreeEntry]:
        self.resolved.append(commit.id)
        return self.trees.get(commit.id, [])


class FakeContentFetcher:
    def __init__(self, blobs: Dict[str, str]):
        self.blobs = blobs
        self.fetched: List[str] = []

    def fetch_content(self, content_id: str) -> str:
        self.fetched.append(content_id)
        return self.blobs[content_id]


class RecordingListener:
    def __init__(self):
        self.events = []

    def confirmation(self, record):
        self.events.append(("confirmation", str(record)))

    def confirmed(self, identity):
        self.events.append(("confirmed", str(identity)))

    def unconfirmed(self, identity):
        self.events.append(("unconfirmed", str(identity)))


def pv_manifest(name: str, namespace: str = "prod") -> str:
    return f"kind: PersistentVolume\nmetadata:\n  name: {name}\n  namespace: {namespace}\n"


@pytest.fixture
def listener():
    return RecordingListener()
