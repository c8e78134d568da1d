#!/usr/bin/env python3
"""
PVGUARD MANIFEST PARSER
-----------------------
Decodes the raw text of a removed manifest into ManifestDocuments.
A file may concatenate several documents separated by '---'.

Author: PVGuard Team
"""

from typing import Any, List

from ruamel.yaml import YAML, YAMLError

from pvguard.core.errors import ManifestParseError
from pvguard.core.models import ManifestDocument


class ManifestParser:
    """
    Strict multi-document loader.

    Unlike a healer, this parser never repairs input: a syntax error or a
    non-mapping document anywhere aborts the whole file.
    """

    def __init__(self):
        self.yaml = YAML(typ='safe')

    def parse(self, raw_text: str, path: str = "") -> List[ManifestDocument]:
        try:
            raw_docs = list(self.yaml.load_all(raw_text))
        except YAMLError as e:
            mark = getattr(e, 'problem_mark', None) or getattr(e, 'context_mark', None)
            where = f" (line {mark.line + 1}, column {mark.column + 1})" if mark else ""
            raise ManifestParseError(f"Malformed YAML{where}: {e}", path=path) from e
        except RecursionError as e:
            raise ManifestParseError("Malformed YAML: nesting is too deep", path=path) from e

        documents = []
        for index, doc in enumerate(raw_docs):
            # Empty documents (e.g. a trailing '---') declare nothing
            if doc is None:
                continue
            documents.append(self._to_document(doc, index, path))
        return documents

    def _to_document(self, doc: Any, index: int, path: str) -> ManifestDocument:
        if not isinstance(doc, dict):
            raise ManifestParseError(
                f"Document #{index + 1} is a {type(doc).__name__}, expected a mapping",
                path=path,
            )
        return ManifestDocument(
            kind=doc.get("kind"),
            metadata=doc.get("metadata"),
            body=doc,
        )
