#!/usr/bin/env python3
"""
PVGUARD VALIDATOR - The Identity Judge
--------------------------------------
Checks that a PersistentVolume document carries enough structure to be
identified, and derives its ResourceIdentity.

Author: PVGuard Team
"""

import logging
from typing import Any, Dict

from pvguard.core.errors import IntegrityError
from pvguard.core.models import ManifestDocument, ResourceIdentity

logger = logging.getLogger("pvguard.validator")


class IdentityValidator:
    """
    Enforces the one structural rule the gate cares about: a
    PersistentVolume must have a metadata block. Anything else in the
    document is ignored.
    """

    def __init__(self):
        self.required_fields = ["metadata"]

    def extract_identity(self, doc: ManifestDocument, path: str = "") -> ResourceIdentity:
        for required in self.required_fields:
            if doc.body.get(required) is None:
                raise IntegrityError(
                    f"The {required} of the deleted persistent volume in '{path}' is undefined"
                )

        metadata = doc.metadata
        if not isinstance(metadata, dict):
            raise IntegrityError(
                f"The metadata of the deleted persistent volume in '{path}' is not a mapping"
            )

        identity = self._identity_from(metadata)
        if identity.namespace is None:
            logger.debug(f"{path}: persistent volume {identity.name} has no namespace")
        return identity

    def _identity_from(self, metadata: Dict[str, Any]) -> ResourceIdentity:
        namespace = metadata.get("namespace")
        name = metadata.get("name")
        return ResourceIdentity(
            namespace=str(namespace) if namespace is not None else None,
            name=str(name) if name is not None else None,
        )
