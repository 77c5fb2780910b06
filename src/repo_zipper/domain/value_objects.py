"""Value objects: self-validating domain primitives."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import unquote

from repo_zipper.domain.exceptions import InvalidRepositoryError

_GITHUB_URL_RE = re.compile(
    r"^https://github\.com/(?P<owner>[^/]+)/(?P<project>[^/]+)"
    r"(?:/(?P<type>tree|blob)/(?P<branch>[^/]+)(?:/(?P<path>.*))?)?"
)


class NodeKind(str, Enum):
    """What a locator points at in the repository tree."""

    FILE = "file"
    DIRECTORY = "dir"
    ROOT = "root"


@dataclass(frozen=True, slots=True)
class RepoLocator:
    """One addressable node of a GitHub repository.

    ``branch`` is ``None`` for the default branch.  ``path`` has no leading or
    trailing slash and is empty for the repository root.
    """

    owner: str
    project: str
    path: str
    kind: NodeKind
    branch: str | None = None

    @classmethod
    def from_url(cls, url: str) -> RepoLocator:
        """Parse a github.com page URL, raising on anything unrecognised."""
        locator = parse_repo_url(url)
        if locator is None:
            raise InvalidRepositoryError(
                f"Invalid repository URL: '{url}'. "
                "Expected https://github.com/<owner>/<repo>[/(tree|blob)/<branch>/<path>]"
            )
        return locator

    def child(self, name: str, kind: NodeKind) -> RepoLocator:
        """Locator for the entry *name* inside this directory."""
        path = f"{self.path}/{name}" if self.path else name
        return RepoLocator(
            owner=self.owner,
            project=self.project,
            path=path,
            kind=kind,
            branch=self.branch,
        )

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.project}"

    @property
    def segments(self) -> list[str]:
        return [part for part in self.path.split("/") if part]

    def __str__(self) -> str:
        ref = f"@{self.branch}" if self.branch else ""
        return f"{self.full_name}{ref}:/{self.path}"


def parse_repo_url(url: str) -> RepoLocator | None:
    """Map a github.com page URL to a locator, or ``None`` if it is not one.

    ``/tree/`` URLs are directories, ``/blob/`` URLs are files and a bare
    ``/<owner>/<repo>`` is the root.  Query strings and fragments are ignored
    and the branch and path are percent-decoded.
    """
    url = url.strip().split("#", 1)[0].split("?", 1)[0]
    match = _GITHUB_URL_RE.match(url)
    if not match:
        return None

    owner, project = match["owner"], match["project"]
    branch = unquote(match["branch"]) if match["branch"] else None
    url_type = match["type"]
    # Page links are percent-encoded; locators hold the plain repository path.
    path = unquote(match["path"] or "").strip("/")

    if url_type is None:
        root_url = f"https://github.com/{owner}/{project}"
        # Extra segments without a tree/blob marker (issues, pulls, ...).
        if len(url) - len(root_url) > 1:
            return None
        kind = NodeKind.ROOT
    elif url_type == "blob":
        kind = NodeKind.FILE
    else:
        kind = NodeKind.DIRECTORY if path else NodeKind.ROOT

    return RepoLocator(
        owner=owner,
        project=project,
        path=path,
        kind=kind,
        branch=branch,
    )


@dataclass(frozen=True, slots=True)
class Credentials:
    """GitHub API token passed explicitly into a collection run."""

    token: str

    def __repr__(self) -> str:
        return "Credentials(token='***')"
