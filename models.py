"""Shared typed models for the registry pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True, slots=True)
class VersionRecord:
    """One downloadable release of a library."""

    version: str | None
    url: str | None
    archive_file_name: str | None
    size: int | None
    checksum: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "url": self.url,
            "archiveFileName": self.archive_file_name,
            "size": self.size,
            "checksum": self.checksum,
        }


@dataclass(frozen=True, slots=True)
class RawEntry:
    """One (library, version) record exactly as listed in the library index."""

    name: str | None
    author: str | None = None
    maintainer: str | None = None
    sentence: str | None = None
    paragraph: str | None = None
    website: str | None = None
    repository: str | None = None
    category: str | None = None
    architectures: tuple[str, ...] = ()
    types: tuple[str, ...] = ()
    version: str | None = None
    url: str | None = None
    archive_file_name: str | None = None
    size: int | None = None
    checksum: str | None = None

    @classmethod
    def from_payload(cls, item: Any) -> RawEntry:
        """Build an entry from one element of the index ``libraries`` array.

        Anything that is not a JSON object yields an entry without a name so
        the grouping stage can skip it with a warning.
        """
        if not isinstance(item, dict):
            return cls(name=None)

        return cls(
            name=_as_str(item.get("name")),
            author=_as_str(item.get("author")),
            maintainer=_as_str(item.get("maintainer")),
            sentence=_as_str(item.get("sentence")),
            paragraph=_as_str(item.get("paragraph")),
            website=_as_str(item.get("website")),
            repository=_as_str(item.get("repository")),
            category=_as_str(item.get("category")),
            architectures=_as_str_tuple(item.get("architectures")),
            types=_as_str_tuple(item.get("types")),
            version=_as_str(item.get("version")),
            url=_as_str(item.get("url")),
            archive_file_name=_as_str(item.get("archiveFileName")),
            size=item.get("size") if isinstance(item.get("size"), int) else None,
            checksum=_as_str(item.get("checksum")),
        )

    def to_version_record(self) -> VersionRecord:
        return VersionRecord(
            version=self.version,
            url=self.url,
            archive_file_name=self.archive_file_name,
            size=self.size,
            checksum=self.checksum,
        )


@dataclass(frozen=True, slots=True)
class RepoIdentity:
    """Owner/repo pair of a GitHub repository."""

    owner: str
    repo: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def html_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}"


@dataclass(frozen=True, slots=True)
class RepoMetadata:
    """Live repository metadata returned by one successful GitHub lookup."""

    stars: int
    is_archived: bool
    pushed_at: str | None
    open_issues: int
    description: str | None
    license: str | None
    topics: tuple[str, ...]

    @classmethod
    def not_found(cls) -> RepoMetadata:
        # A vanished repository ranks as an archived one with no stars.
        return cls(
            stars=0,
            is_archived=True,
            pushed_at=None,
            open_issues=0,
            description=None,
            license=None,
            topics=(),
        )


@dataclass(slots=True)
class Package:
    """A uniquely named library with its version history and GitHub enrichment.

    Enrichment fields stay ``None`` until :meth:`apply_metadata` is called,
    which sets all of them at once.
    """

    name: str
    author: str | None = None
    maintainer: str | None = None
    sentence: str | None = None
    paragraph: str | None = None
    website: str | None = None
    category: str | None = None
    architectures: tuple[str, ...] = ()
    types: tuple[str, ...] = ()
    repository: str | None = None
    repo_identity: RepoIdentity | None = None
    versions: list[VersionRecord] = field(default_factory=list)
    stars: int | None = None
    is_archived: bool | None = None
    pushed_at: str | None = None
    open_issues: int | None = None
    topics: tuple[str, ...] | None = None
    license: str | None = None
    github_description: str | None = None

    @property
    def is_enriched(self) -> bool:
        return self.stars is not None

    def apply_metadata(self, metadata: RepoMetadata) -> None:
        self.stars = metadata.stars
        self.is_archived = metadata.is_archived
        self.pushed_at = metadata.pushed_at
        self.open_issues = metadata.open_issues
        self.topics = metadata.topics
        self.license = metadata.license
        self.github_description = metadata.description

    def to_dict(self) -> dict[str, Any]:
        """Serialize for the registry file (the repo identity stays internal)."""
        return {
            "name": self.name,
            "author": self.author,
            "maintainer": self.maintainer,
            "sentence": self.sentence,
            "paragraph": self.paragraph,
            "website": self.website,
            "category": self.category,
            "architectures": list(self.architectures),
            "types": list(self.types),
            "repository": self.repository,
            "versions": [record.to_dict() for record in self.versions],
            "stars": self.stars,
            "isArchived": self.is_archived,
            "pushedAt": self.pushed_at,
            "openIssues": self.open_issues,
            "githubDescription": self.github_description,
            "license": self.license,
            "topics": None if self.topics is None else list(self.topics),
        }


@dataclass(frozen=True, slots=True)
class Registry:
    """Final ranked catalog written once at the end of a run."""

    generated_at: datetime
    libraries: tuple[Package, ...]

    @property
    def total_libraries(self) -> int:
        return len(self.libraries)

    def to_dict(self) -> dict[str, Any]:
        return {
            "generatedAt": self.generated_at.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "totalLibraries": self.total_libraries,
            "libraries": [package.to_dict() for package in self.libraries],
        }


def _as_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _as_str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, str))
