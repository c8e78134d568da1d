#!/usr/bin/env python3
"""
PVGUARD RECONCILER SUITE
------------------------
Drives the DeletionReconciler with in-memory collaborators:
1. Confirmed and unconfirmed deletions
2. Extension filtering and kind filtering
3. Integrity failures (missing tree entries, missing metadata)
4. Early termination after the first violating commit

Author: PVGuard Team
"""

import pytest

from conftest import FakeContentFetcher, FakeTreeResolver, pv_manifest
from pvguard.core.engine import DeletionReconciler
from pvguard.core.errors import IntegrityError, ManifestParseError, UnconfirmedDeletionError
from pvguard.core.models import Commit, PushEvent, ResourceIdentity, TreeEntry


def make_push(*commits: Commit) -> PushEvent:
    return PushEvent(ref="refs/heads/main", head_commit_id=commits[-1].id, commits=list(commits))


def make_reconciler(trees, blobs, listener=None):
    resolver = FakeTreeResolver(trees)
    fetcher = FakeContentFetcher(blobs)
    return DeletionReconciler(resolver, fetcher, listener=listener), resolver, fetcher


def test_confirmed_deletion_passes(listener):
    commit = Commit(id="c1", message="DELETE_PERSISTENT_VOLUME: prod/pv-1",
                    tree_id="t1", removed=["pv-1.yaml"])
    reconciler, _, _ = make_reconciler(
        {"c1": [TreeEntry("pv-1.yaml", "b1")]},
        {"b1": pv_manifest("pv-1")},
        listener,
    )

    outcome = reconciler.run(make_push(commit))

    assert outcome.confirmed == [ResourceIdentity("prod", "pv-1")]
    assert outcome.unconfirmed == []
    assert not outcome.has_unconfirmed_deletions
    assert listener.events == [
        ("confirmation", "prod/pv-1"),
        ("confirmed", "prod/pv-1"),
    ]


def test_unconfirmed_deletion_fails(listener):
    commit = Commit(id="c1", message="Remove pv-1", tree_id="t1", removed=["pv-1.yaml"])
    reconciler, _, _ = make_reconciler(
        {"c1": [TreeEntry("pv-1.yaml", "b1")]},
        {"b1": pv_manifest("pv-1")},
        listener,
    )

    with pytest.raises(UnconfirmedDeletionError) as excinfo:
        reconciler.run(make_push(commit))

    outcome = excinfo.value.outcome
    assert outcome.has_unconfirmed_deletions
    assert outcome.unconfirmed == [ResourceIdentity("prod", "pv-1")]
    assert outcome.stopped_at == "c1"
    assert listener.events == [("unconfirmed", "prod/pv-1")]


def test_confirmation_from_another_commit_counts():
    first = Commit(id="c1", message="Drop volume", tree_id="t1", removed=["k8s/pv.yml"])
    second = Commit(id="c2", message="DELETE_PERSISTENT_VOLUME:prod/pv-1", tree_id="t2")
    reconciler, resolver, _ = make_reconciler(
        {"c1": [TreeEntry("k8s/pv.yml", "b1")]},
        {"b1": pv_manifest("pv-1")},
    )

    outcome = reconciler.run(make_push(first, second))

    assert outcome.confirmed == [ResourceIdentity("prod", "pv-1")]
    assert outcome.commits_processed == 2
    assert resolver.resolved == ["c1", "c2"]


def test_non_manifest_files_are_never_fetched():
    commit = Commit(id="c1", message="cleanup", tree_id="t1",
                    removed=["README.md", "pv.yaml.bak", "values.json", "chart/PV.YAML"])
    reconciler, _, fetcher = make_reconciler({"c1": []}, {})

    outcome = reconciler.run(make_push(commit))

    assert fetcher.fetched == []
    assert outcome.confirmed == [] and outcome.unconfirmed == []


def test_other_kinds_are_ignored():
    content = (
        "kind: PersistentVolumeClaim\nmetadata:\n  name: claim\n  namespace: prod\n"
        "---\n"
        "kind: Deployment\nmetadata:\n  name: web\n"
    )
    commit = Commit(id="c1", message="no confirmation", tree_id="t1", removed=["app.yaml"])
    reconciler, _, fetcher = make_reconciler(
        {"c1": [TreeEntry("app.yaml", "b1")]}, {"b1": content}
    )

    outcome = reconciler.run(make_push(commit))

    assert fetcher.fetched == ["b1"]
    assert not outcome.has_unconfirmed_deletions


def test_every_volume_in_a_file_is_reported(listener):
    content = pv_manifest("pv-1") + "---\n" + pv_manifest("pv-2")
    commit = Commit(id="c1", message="DELETE_PERSISTENT_VOLUME:prod/pv-2",
                    tree_id="t1", removed=["pvs.yaml"])
    reconciler, _, _ = make_reconciler({"c1": [TreeEntry("pvs.yaml", "b1")]}, {"b1": content}, listener)

    with pytest.raises(UnconfirmedDeletionError) as excinfo:
        reconciler.run(make_push(commit))

    assert excinfo.value.outcome.confirmed == [ResourceIdentity("prod", "pv-2")]
    assert listener.events[1:] == [("unconfirmed", "prod/pv-1"), ("confirmed", "prod/pv-2")]


def test_missing_tree_entry_is_integrity_error():
    commit = Commit(id="c1", message="DELETE_PERSISTENT_VOLUME:prod/pv-1",
                    tree_id="t1", removed=["pv-1.yaml"])
    reconciler, _, fetcher = make_reconciler({"c1": [TreeEntry("other.yaml", "b2")]}, {})

    with pytest.raises(IntegrityError, match="pv-1.yaml"):
        reconciler.run(make_push(commit))
    assert fetcher.fetched == []


def test_missing_metadata_is_integrity_error():
    commit = Commit(id="c1", message="", tree_id="t1", removed=["pv.yaml"])
    reconciler, _, _ = make_reconciler(
        {"c1": [TreeEntry("pv.yaml", "b1")]},
        {"b1": "kind: PersistentVolume\nspec:\n  capacity:\n    storage: 1Gi\n"},
    )

    with pytest.raises(IntegrityError, match="metadata"):
        reconciler.run(make_push(commit))


def test_malformed_yaml_aborts_run():
    commit = Commit(id="c1", message="", tree_id="t1", removed=["pv.yaml"])
    reconciler, _, _ = make_reconciler(
        {"c1": [TreeEntry("pv.yaml", "b1")]},
        {"b1": "kind: PersistentVolume\nmetadata: {name: [\n"},
    )

    with pytest.raises(ManifestParseError):
        reconciler.run(make_push(commit))


def test_stops_after_first_violating_commit(listener):
    first = Commit(id="c1", message="oops", tree_id="t1", removed=["a.yaml", "b.yaml"])
    second = Commit(id="c2", message="DELETE_PERSISTENT_VOLUME:prod/pv-3",
                    tree_id="t2", removed=["c.yaml"])
    reconciler, resolver, fetcher = make_reconciler(
        {
            "c1": [TreeEntry("a.yaml", "b1"), TreeEntry("b.yaml", "b2")],
            "c2": [TreeEntry("c.yaml", "b3")],
        },
        {"b1": pv_manifest("pv-1"), "b2": pv_manifest("pv-2"), "b3": pv_manifest("pv-3")},
        listener,
    )

    with pytest.raises(UnconfirmedDeletionError) as excinfo:
        reconciler.run(make_push(first, second))

    outcome = excinfo.value.outcome
    # Every removed file of the violating commit is still reported
    assert [str(i) for i in outcome.unconfirmed] == ["prod/pv-1", "prod/pv-2"]
    assert outcome.commits_processed == 1
    assert outcome.stopped_at == "c1"
    # The second commit's tree is never resolved
    assert resolver.resolved == ["c1"]
    assert "b3" not in fetcher.fetched


def test_trees_are_resolved_per_commit():
    commits = [Commit(id=f"c{i}", message="", tree_id=f"t{i}") for i in range(3)]
    reconciler, resolver, _ = make_reconciler({}, {})

    outcome = reconciler.run(make_push(*commits))

    assert resolver.resolved == ["c0", "c1", "c2"]
    assert outcome.commits_processed == 3
