"""Extract GitHub owner/repo identities from website and repository URLs."""

from __future__ import annotations

import re
from typing import Any

from models import RepoIdentity

# Matches both https://github.com/owner/repo[...] and git@github.com:owner/repo.git
_GITHUB_URL_RE = re.compile(r"github\.com[/:]([\w.-]+)/([\w.-]+)", re.ASCII)
_GIT_SUFFIX = ".git"


def parse_github_url(url: Any) -> RepoIdentity | None:
    """Return the owner/repo identity for a GitHub URL, or None.

    Purely syntactic: the repository is not checked for existence. Malformed,
    empty, non-string, or non-GitHub input yields None.
    """
    if not isinstance(url, str) or not url.strip():
        return None

    match = _GITHUB_URL_RE.search(url)
    if not match:
        return None

    owner, repo = match.group(1), match.group(2)
    if repo.endswith(_GIT_SUFFIX):
        repo = repo[: -len(_GIT_SUFFIX)]
    if not repo:
        return None

    return RepoIdentity(owner=owner, repo=repo)


def canonical_repo_url(identity: RepoIdentity | None) -> str | None:
    return identity.html_url if identity is not None else None
