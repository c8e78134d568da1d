#!/usr/bin/env python3
"""
PVGUARD CONFIRMATION PARSER
---------------------------
Mines deletion confirmations out of free-text commit messages.

A qualifying line looks like:

    DELETE_PERSISTENT_VOLUME:prod/pv-data, staging/pv-cache

Author: PVGuard Team
"""

import logging
from typing import Iterable, List

from pvguard.core.models import ConfirmationRecord, ConfirmationSet

logger = logging.getLogger("pvguard.confirmation")


class ConfirmationParser:
    """
    Turns commit messages into ConfirmationRecords.

    Parsing is deliberately permissive: tokens without a '/' or with empty
    segments are kept as-is and simply never match a real resource.
    """

    PREFIX = "DELETE_PERSISTENT_VOLUME:"
    PAIR_SEPARATOR = ","
    METADATA_SEPARATOR = "/"

    def parse(self, message: str) -> List[ConfirmationRecord]:
        records = []
        for line in message.split("\n"):
            if not line.startswith(self.PREFIX):
                continue
            for pair in line[len(self.PREFIX):].split(self.PAIR_SEPARATOR):
                records.append(self._parse_pair(pair.strip()))
        return records

    def parse_messages(self, messages: Iterable[str]) -> ConfirmationSet:
        """Pools the confirmations of every commit in a push."""
        records = []
        for message in messages:
            records.extend(self.parse(message))
        logger.debug(f"Collected {len(records)} confirmation(s)")
        return ConfirmationSet(records)

    def _parse_pair(self, pair: str) -> ConfirmationRecord:
        # Only the first two segments count; anything after a second '/' is dropped
        parts = pair.split(self.METADATA_SEPARATOR)
        name = parts[1] if len(parts) > 1 else None
        return ConfirmationRecord(namespace=parts[0], name=name)
