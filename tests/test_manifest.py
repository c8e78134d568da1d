import pytest

from pvguard.core.errors import IntegrityError, ManifestParseError
from pvguard.core.models import ManifestDocument, ResourceIdentity
from pvguard.parsing.manifest import ManifestParser
from pvguard.validator.validator import IdentityValidator

MULTI_DOC = """\
apiVersion: v1
kind: PersistentVolume
metadata:
  name: pv-1
  namespace: prod
spec:
  capacity:
    storage: 10Gi
---
apiVersion: v1
kind: PersistentVolumeClaim
metadata:
  name: claim-1
  namespace: prod
---
"""


def test_multi_document_order_and_fields():
    docs = ManifestParser().parse(MULTI_DOC)

    assert [d.kind for d in docs] == ["PersistentVolume", "PersistentVolumeClaim"]
    assert docs[0].is_persistent_volume
    assert not docs[1].is_persistent_volume
    assert docs[0].metadata == {"name": "pv-1", "namespace": "prod"}
    # Unused fields are preserved
    assert docs[0].body["spec"]["capacity"]["storage"] == "10Gi"


def test_empty_file_has_no_documents():
    assert ManifestParser().parse("") == []
    assert ManifestParser().parse("# only a comment\n") == []


@pytest.mark.parametrize("raw", [
    "kind: PersistentVolume\nmetadata: [unclosed\n",
    "kind: PersistentVolume\n  metadata:\n name: broken\n",
    "kind: Service\n---\n- just\n- a list\n",
    "kind: Service\n---\nplain scalar\n",
])
def test_malformed_input_fails_whole_file(raw):
    with pytest.raises(ManifestParseError) as excinfo:
        ManifestParser().parse(raw, path="broken.yaml")
    assert "broken.yaml" in str(excinfo.value)


def test_deep_nesting_is_a_parse_error():
    with pytest.raises(ManifestParseError, match="nesting is too deep"):
        ManifestParser().parse("[" * 5000 + "]" * 5000, path="deep.yaml")


def test_identity_from_metadata():
    doc = ManifestParser().parse("kind: PersistentVolume\nmetadata:\n  name: pv-1\n  namespace: prod\n")[0]
    assert IdentityValidator().extract_identity(doc) == ResourceIdentity("prod", "pv-1")


def test_identity_without_namespace():
    doc = ManifestDocument(kind="PersistentVolume", metadata={"name": "pv-1"},
                           body={"kind": "PersistentVolume", "metadata": {"name": "pv-1"}})
    identity = IdentityValidator().extract_identity(doc)
    assert identity.namespace is None
    assert identity.name == "pv-1"


@pytest.mark.parametrize("raw", [
    "kind: PersistentVolume\nspec: {}\n",
    "kind: PersistentVolume\nmetadata:\n",
    "kind: PersistentVolume\nmetadata: pv-1\n",
])
def test_missing_metadata_is_fatal(raw):
    doc = ManifestParser().parse(raw)[0]
    with pytest.raises(IntegrityError):
        IdentityValidator().extract_identity(doc, path="pv.yaml")
