"""
Uniform read access to a mod package.

A package is either a ``.zip`` archive or an unpacked folder.  Both are
exposed through :class:`PackageHandle` so the rule engine and the extractors
never need to know which one they are looking at.

Public API
----------
open_package(path) -> PackageHandle
    Raises :class:`PackageUnreadableError` if the path cannot be opened.
PackageHandle.list() -> list[ManifestEntry]
PackageHandle.exists(name) -> bool
PackageHandle.read_text(name) / read_bytes(name)
    Raise ``FileNotFoundError`` for entries that are absent or unreadable.

Entry names are always forward-slash relative paths.  Archive member names
are sanitized (backslashes, leading ``/`` or ``./``) and members that would
escape the package root are dropped entirely, so an archive and the folder it
was packed from list exactly the same names.
"""

from __future__ import annotations

import logging
import re
import zipfile
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

_log = logging.getLogger(__name__)

_DRIVE_RE = re.compile(r"^[A-Za-z]:$")


class PackageUnreadableError(Exception):
    """The package path is missing, corrupt, or of the wrong kind."""


@dataclass(frozen=True)
class ManifestEntry:
    """One file or directory inside a package."""

    name: str  # Relative path, forward slashes, no trailing slash
    size: int  # Uncompressed size in bytes, 0 for directories
    is_folder: bool
    extension: str  # Lowercased, no leading dot, "" when there is none

    @classmethod
    def build(cls, name: str, size: int, is_folder: bool) -> ManifestEntry:
        if is_folder:
            extension = ""
        else:
            extension = PurePosixPath(name).suffix.lower().lstrip(".")
        return cls(name=name, size=size, is_folder=is_folder, extension=extension)


def sanitize_member_name(name: str) -> str | None:
    """Normalise an archive member name, or return None if it is unsafe."""
    name = name.replace("\\", "/")
    while name.startswith("./"):
        name = name[2:]
    name = name.strip("/")
    if not name:
        return None
    parts = name.split("/")
    if ".." in parts or _DRIVE_RE.match(parts[0]):
        return None
    return "/".join(p for p in parts if p not in ("", "."))


# ── Capability interface ──────────────────────────────────────────────


class PackageHandle(ABC):
    """Read-only view of one package, owned by a single checker run."""

    is_folder: bool = False

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._manifest: list[ManifestEntry] | None = None

    def __enter__(self) -> PackageHandle:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        pass

    def list(self) -> list[ManifestEntry]:
        """Every entry in the package, sorted by name.  Empty on any error."""
        if self._manifest is None:
            try:
                self._manifest = sorted(self._scan(), key=lambda e: e.name)
            except (OSError, zipfile.BadZipFile) as exc:
                _log.warning("Could not list %s: %s", self.path, exc)
                self._manifest = []
        return self._manifest

    def read_text(self, name: str) -> str:
        return self.read_bytes(name).decode("utf-8-sig", errors="replace")

    @abstractmethod
    def _scan(self) -> list[ManifestEntry]: ...

    @abstractmethod
    def exists(self, name: str) -> bool: ...

    @abstractmethod
    def read_bytes(self, name: str) -> bytes: ...

    @abstractmethod
    def total_size(self) -> int: ...


# ── Archive-backed ────────────────────────────────────────────────────


class ZipPackage(PackageHandle):
    is_folder = False

    def __init__(self, path: str | Path):
        super().__init__(path)
        if self.path.is_dir():
            raise PackageUnreadableError(f"{self.path} is a folder, not an archive")
        try:
            self._zf = zipfile.ZipFile(self.path, "r")
        except (OSError, zipfile.BadZipFile) as exc:
            raise PackageUnreadableError(f"Could not open {self.path}: {exc}") from exc

        self._members: dict[str, zipfile.ZipInfo] = {}
        for info in self._zf.infolist():
            clean = sanitize_member_name(info.filename)
            if clean is None:
                _log.warning("Skipping unsafe archive member %r in %s", info.filename, self.path.name)
                continue
            self._members.setdefault(clean, info)

    def close(self) -> None:
        self._zf.close()

    def _scan(self) -> list[ManifestEntry]:
        entries: dict[str, ManifestEntry] = {}
        for name, info in self._members.items():
            entries[name] = ManifestEntry.build(name, 0 if info.is_dir() else info.file_size, info.is_dir())
        return list(entries.values())

    def exists(self, name: str) -> bool:
        clean = sanitize_member_name(name)
        return clean is not None and clean in self._members

    def read_bytes(self, name: str) -> bytes:
        clean = sanitize_member_name(name)
        info = self._members.get(clean) if clean is not None else None
        if info is None or info.is_dir():
            raise FileNotFoundError(name)
        try:
            return self._zf.read(info)
        except (OSError, zipfile.BadZipFile, zlib.error, NotImplementedError) as exc:
            _log.warning("Could not read %s from %s: %s", name, self.path.name, exc)
            raise FileNotFoundError(name) from exc

    def total_size(self) -> int:
        return self.path.stat().st_size


# ── Directory-backed ──────────────────────────────────────────────────


class FolderPackage(PackageHandle):
    is_folder = True

    def __init__(self, path: str | Path):
        super().__init__(path)
        if not self.path.is_dir():
            raise PackageUnreadableError(f"{self.path} is not a folder")
        self._root = self.path.resolve()

    def _scan(self) -> list[ManifestEntry]:
        entries = []
        for p in self._root.rglob("*"):
            rel = p.relative_to(self._root).as_posix()
            try:
                if p.is_dir():
                    entries.append(ManifestEntry.build(rel, 0, True))
                else:
                    entries.append(ManifestEntry.build(rel, p.stat().st_size, False))
            except OSError as exc:
                # Dangling links and files removed mid-scan
                _log.warning("Skipping unreadable entry %s in %s: %s", rel, self.path.name, exc)
        return entries

    def _resolve(self, name: str) -> Path | None:
        clean = sanitize_member_name(name)
        if clean is None:
            return None
        target = (self._root / clean).resolve()
        if not target.is_relative_to(self._root):
            return None
        return target

    def exists(self, name: str) -> bool:
        target = self._resolve(name)
        return target is not None and target.exists()

    def read_bytes(self, name: str) -> bytes:
        target = self._resolve(name)
        if target is None or not target.is_file():
            raise FileNotFoundError(name)
        return target.read_bytes()

    def total_size(self) -> int:
        return sum(e.size for e in self.list())


def open_package(path: str | Path) -> PackageHandle:
    """Open *path* as a folder or an archive depending on what it is."""
    path = Path(path)
    if path.is_dir():
        return FolderPackage(path)
    return ZipPackage(path)
