#!/usr/bin/env python3
"""
PVGUARD GITHUB CLIENT
---------------------
Thin wrapper around the GitHub git-data REST API. Provides the two
collaborators the reconciler needs: tree resolution and blob retrieval.

No retries and no caching: every call blocks until GitHub answers, and any
unsuccessful answer ends the run.

Author: PVGuard Team
"""

import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

import requests

from pvguard.core.config import GuardConfig
from pvguard.core.errors import CollaboratorError
from pvguard.core.models import Commit, TreeEntry

logger = logging.getLogger("pvguard.github")

SUPPORTED_ENCODING = "base64"


class GitHubClient:
    """Client for the git-data endpoints of a single repository."""

    def __init__(self, owner: str, repo: str, token: Optional[str] = None,
                 api_url: str = "https://api.github.com", timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.owner = owner
        self.repo = repo
        self.base_url = f"{api_url.rstrip('/')}/repos/{owner}/{repo}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(self._get_headers(token))

    @classmethod
    def from_config(cls, config: GuardConfig, session: Optional[requests.Session] = None) -> "GitHubClient":
        owner, repo = config.owner_and_repo
        if not config.token:
            logger.warning("No GitHub token configured; requests are unauthenticated")
        return cls(owner, repo, token=config.token, api_url=config.api_url,
                   timeout=config.timeout, session=session)

    def _get_headers(self, token: Optional[str]) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "pvguard",
        }
        if token:
            headers["Authorization"] = f"token {token}"
        return headers

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{endpoint}"
        logger.debug(f"GET {url}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise CollaboratorError(f"The request to {url} failed: {e}") from e

        if response is None:
            raise CollaboratorError("The response is undefined")
        if response.status_code != 200:
            raise CollaboratorError(f"The status code {response.status_code} is not supported")
        if not response.content:
            raise CollaboratorError("The response data is undefined")
        try:
            data = response.json()
        except ValueError as e:
            raise CollaboratorError(f"The response data of {url} is not JSON: {e}") from e
        if not data:
            raise CollaboratorError("The response data is undefined")
        if not isinstance(data, dict):
            raise CollaboratorError(f"The response data of {url} is a {type(data).__name__}, expected an object")
        return data

    def resolve_tree(self, commit: Commit) -> List[TreeEntry]:
        """
        Returns the flattened tree of the commit's first parent, i.e. the
        state the removed paths still exist in. A root commit has nothing
        before it, so its pre-change tree is empty.
        """
        logger.debug(f"Commit {commit.id} has post-change tree {commit.tree_id or '<unknown>'}")
        commit_data = self._get(f"git/commits/{commit.id}")
        parents = commit_data.get("parents") or []
        if not isinstance(parents, list):
            raise CollaboratorError(f"The parents of commit {commit.id} are not a list")
        if not parents:
            logger.info(f"Commit {commit.id} has no parent; its pre-change tree is empty")
            return []

        parent_sha = parents[0].get("sha") if isinstance(parents[0], dict) else None
        if not parent_sha:
            raise CollaboratorError(f"The parent sha of commit {commit.id} is undefined")

        # The trees endpoint accepts a commit sha and resolves it to its tree
        tree_data = self._get(f"git/trees/{parent_sha}", params={"recursive": "1"})
        tree = tree_data.get("tree")
        if tree is None:
            raise CollaboratorError("The tree is undefined")
        if not isinstance(tree, list):
            raise CollaboratorError(f"The tree of {parent_sha} is a {type(tree).__name__}, expected a list")
        if tree_data.get("truncated"):
            logger.warning(f"The tree of {parent_sha} was truncated by GitHub; deep paths may be missing")

        entries = []
        for item in tree:
            if not isinstance(item, dict):
                raise CollaboratorError(f"An item of the tree of {parent_sha} is not an object")
            if item.get("type", "blob") == "blob" and item.get("path") and item.get("sha"):
                entries.append(TreeEntry(path=str(item["path"]), content_id=str(item["sha"])))
        return entries

    def fetch_content(self, content_id: str) -> str:
        data = self._get(f"git/blobs/{content_id}")
        encoding = data.get("encoding")
        if encoding != SUPPORTED_ENCODING:
            raise CollaboratorError(f"The encoding \"{encoding}\" is not supported")
        content = data.get("content")
        if content is None:
            raise CollaboratorError("The content is undefined")
        if not isinstance(content, str):
            raise CollaboratorError(f"The content of blob {content_id} is not a string")
        try:
            return base64.b64decode(content).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise CollaboratorError(f"The content of blob {content_id} could not be decoded: {e}") from e
