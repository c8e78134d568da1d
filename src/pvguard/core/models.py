#!/usr/bin/env python3
"""
PVGUARD CORE MODELS
-------------------
Defines the fundamental data structures used across the PVGuard engine.
Every object here is created fresh for a single push and discarded when
the run ends.

Author: PVGuard Team
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

PERSISTENT_VOLUME_KIND = "PersistentVolume"


@dataclass(frozen=True)
class ConfirmationRecord:
    """
    One PersistentVolume explicitly approved for deletion.

    Parsed from a `DELETE_PERSISTENT_VOLUME:` line of a commit message.
    Malformed tokens still produce a record (name may be None); such a
    record never matches a real resource.
    """
    namespace: str
    name: Optional[str] = None

    @property
    def key(self) -> Tuple[Optional[str], Optional[str]]:
        return (self.namespace, self.name)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class ResourceIdentity:
    """The (namespace, name) identity of a PersistentVolume found in a manifest."""
    namespace: Optional[str]   # Absent on cluster-scoped manifests
    name: Optional[str]

    @property
    def key(self) -> Tuple[Optional[str], Optional[str]]:
        return (self.namespace, self.name)

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass
class ManifestDocument:
    """
    A single decoded YAML document.

    Only `kind` and `metadata` are interpreted; `body` keeps the whole
    mapping untouched.
    """
    kind: Optional[str]
    metadata: Optional[Dict[str, Any]]
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_persistent_volume(self) -> bool:
        return self.kind == PERSISTENT_VOLUME_KIND


@dataclass(frozen=True)
class TreeEntry:
    """One row of a commit's flattened file tree."""
    path: str          # Repository-relative path
    content_id: str    # Blob SHA, valid only for this tree


@dataclass
class Commit:
    """The part of a push payload commit the reconciler consumes."""
    id: str
    message: str
    tree_id: Optional[str] = None   # Post-change tree; informational, the pre-change tree is resolved
    removed: List[str] = field(default_factory=list)


@dataclass
class PushEvent:
    ref: str
    head_commit_id: str
    commits: List[Commit]

    @property
    def messages(self) -> List[str]:
        return [commit.message for commit in self.commits]


class ConfirmationSet:
    """
    The pooled, read-only confirmations of a whole push.

    Matching is done by value on (namespace, name), never by object identity.
    """

    def __init__(self, records=()):
        self._records: Tuple[ConfirmationRecord, ...] = tuple(records)
        self._keys = frozenset(record.key for record in self._records)

    def confirms(self, identity: ResourceIdentity) -> bool:
        return identity.key in self._keys

    def __iter__(self):
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"ConfirmationSet({list(self._records)!r})"


@dataclass
class ReconciliationOutcome:
    """Result of reconciling one push against its confirmation set."""
    confirmations: ConfirmationSet
    confirmed: List[ResourceIdentity] = field(default_factory=list)
    unconfirmed: List[ResourceIdentity] = field(default_factory=list)
    commits_processed: int = 0
    stopped_at: Optional[str] = None   # Commit id that triggered early termination

    @property
    def has_unconfirmed_deletions(self) -> bool:
        return bool(self.unconfirmed)
