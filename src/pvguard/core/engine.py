#!/usr/bin/env python3
"""
PVGUARD ENGINE - The Deletion Reconciler
----------------------------------------
Walks every commit of a push, recovers the content of each removed
manifest from the commit's pre-change tree, and checks every
PersistentVolume found there against the push's pooled confirmations.

Processing order is strict: commit, then removed file, then YAML document.
The first commit that leaves an unconfirmed deletion ends the walk; later
commits are never resolved.

Author: PVGuard Team
"""

import logging
from typing import Dict, Iterator, List, Optional, Protocol, Sequence

from pvguard.core.errors import IntegrityError, UnconfirmedDeletionError
from pvguard.core.models import (
    Commit,
    ConfirmationSet,
    PushEvent,
    ReconciliationOutcome,
    ResourceIdentity,
    TreeEntry,
)
from pvguard.parsing.confirmation import ConfirmationParser
from pvguard.parsing.manifest import ManifestParser
from pvguard.validator.validator import IdentityValidator

logger = logging.getLogger("pvguard.engine")

MANIFEST_EXTENSIONS = (".yaml", ".yml")


class TreeResolver(Protocol):
    def resolve_tree(self, commit: Commit) -> List[TreeEntry]:
        """Returns the flat tree of the commit as it was before its changes."""


class ContentFetcher(Protocol):
    def fetch_content(self, content_id: str) -> str:
        """Returns the decoded text of a blob."""


class ReconciliationListener(Protocol):
    def confirmation(self, record) -> None: ...

    def confirmed(self, identity: ResourceIdentity) -> None: ...

    def unconfirmed(self, identity: ResourceIdentity) -> None: ...


class DeletionReconciler:
    """
    Principal orchestrator of the gate.

    The hosting-API collaborators are injected so that tests (and other
    hosts) can substitute them.
    """

    def __init__(self, tree_resolver: TreeResolver, content_fetcher: ContentFetcher,
                 listener: Optional[ReconciliationListener] = None,
                 confirmation_parser: Optional[ConfirmationParser] = None,
                 manifest_parser: Optional[ManifestParser] = None,
                 validator: Optional[IdentityValidator] = None):
        self.tree_resolver = tree_resolver
        self.content_fetcher = content_fetcher
        self.listener = listener
        self.confirmation_parser = confirmation_parser or ConfirmationParser()
        self.manifest_parser = manifest_parser or ManifestParser()
        self.validator = validator or IdentityValidator()

    def run(self, push: PushEvent) -> ReconciliationOutcome:
        """
        Full gate for one push. Returns the outcome when every deletion is
        confirmed, raises UnconfirmedDeletionError otherwise.
        """
        logger.debug(f"The head commit is: {push.head_commit_id}")
        confirmations = self.build_confirmations(push)
        outcome = self.reconcile(push.commits, confirmations)
        if outcome.has_unconfirmed_deletions:
            raise UnconfirmedDeletionError(outcome)
        return outcome

    def build_confirmations(self, push: PushEvent) -> ConfirmationSet:
        confirmations = self.confirmation_parser.parse_messages(push.messages)
        for record in confirmations:
            logger.debug(f"Confirmation pooled: {record}")
            if self.listener:
                self.listener.confirmation(record)
        return confirmations

    def reconcile(self, commits: Sequence[Commit], confirmations: ConfirmationSet) -> ReconciliationOutcome:
        outcome = ReconciliationOutcome(confirmations=confirmations)

        for commit in commits:
            violation = self._reconcile_commit(commit, confirmations, outcome)
            outcome.commits_processed += 1
            if violation:
                outcome.stopped_at = commit.id
                logger.debug(f"Stopping at commit {commit.id}: unconfirmed persistent volume deletion")
                break

        return outcome

    def _reconcile_commit(self, commit: Commit, confirmations: ConfirmationSet,
                          outcome: ReconciliationOutcome) -> bool:
        """Processes every removed file of one commit. Returns True on a violation."""
        tree = self._index_tree(self.tree_resolver.resolve_tree(commit))
        violation = False

        for removed_path in commit.removed:
            if not removed_path.endswith(MANIFEST_EXTENSIONS):
                continue

            for identity in self._removed_volumes(commit, removed_path, tree):
                if confirmations.confirms(identity):
                    outcome.confirmed.append(identity)
                    logger.debug(f"Persistent volume {identity} is confirmed for deletion")
                    if self.listener:
                        self.listener.confirmed(identity)
                else:
                    outcome.unconfirmed.append(identity)
                    violation = True
                    logger.debug(f"Persistent volume {identity} is NOT confirmed for deletion")
                    if self.listener:
                        self.listener.unconfirmed(identity)

        return violation

    def _removed_volumes(self, commit: Commit, path: str, tree: Dict[str, str]) -> Iterator[ResourceIdentity]:
        content_id = tree.get(path)
        if not content_id:
            raise IntegrityError(
                f"The sha of the deleted file \"{path}\" is undefined in the tree of commit {commit.id}"
            )

        raw_text = self.content_fetcher.fetch_content(content_id)
        documents = self.manifest_parser.parse(raw_text, path=path)
        logger.debug(f"{path}: {len(documents)} document(s)")

        for doc in documents:
            if doc.is_persistent_volume:
                yield self.validator.extract_identity(doc, path=path)

    def _index_tree(self, entries: List[TreeEntry]) -> Dict[str, str]:
        return {entry.path: entry.content_id for entry in entries}
