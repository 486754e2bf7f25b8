"""
Shared fixtures and helpers for the FS Mod Checker test suite.

Packages are built on the fly in tmp_path; no binary fixtures are checked in.
"""

import io
import struct
import zipfile
import zlib
from pathlib import Path

import pytest
from PIL import Image


def make_zip(path: Path, members: dict) -> Path:
    """Write a zip at *path* with ``{member_name: str | bytes}`` contents."""
    with zipfile.ZipFile(path, "w") as zf:
        for member, data in members.items():
            zf.writestr(member, data)
    return path


def make_folder(path: Path, members: dict) -> Path:
    """Unpacked equivalent of :func:`make_zip`."""
    path.mkdir(parents=True, exist_ok=True)
    for member, data in members.items():
        target = path / member
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(data, str):
            data = data.encode("utf-8")
        target.write_bytes(data)
    return path


def image_bytes(size=(64, 64), color=(200, 120, 40, 255)) -> bytes:
    """A small real image.  Pillow sniffs the format, so it can be stored as .dds."""
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


def oversized_png_header(width=20000, height=20000) -> bytes:
    """A PNG signature and IHDR only, declaring far more pixels than Pillow allows."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 6, 0, 0, 0)
    chunk = b"IHDR" + ihdr
    return b"\x89PNG\r\n\x1a\n" + struct.pack(">I", len(ihdr)) + chunk + struct.pack(">I", zlib.crc32(chunk))


def mod_desc_xml(
    *,
    desc_version: str | None = "72",
    version: str | None = "1.0.0.0",
    author: str | None = "Test Author",
    title: str | None = "<en>Test Mod</en><de>Testmod</de>",
    description: str | None = "<en>A mod for testing</en>",
    icon: str | None = "icon.dds",
    multiplayer: str | None = "true",
    extra: str = "",
) -> str:
    """Build a modDesc.xml, leaving out any part passed as None."""
    parts = []
    if author is not None:
        parts.append(f"<author>{author}</author>")
    if version is not None:
        parts.append(f"<version>{version}</version>")
    if title is not None:
        parts.append(f"<title>{title}</title>")
    if description is not None:
        parts.append(f"<description>{description}</description>")
    if icon is not None:
        parts.append(f"<iconFilename>{icon}</iconFilename>")
    if multiplayer is not None:
        parts.append(f'<multiplayer supported="{multiplayer}"/>')
    parts.append(extra)
    dv = f' descVersion="{desc_version}"' if desc_version is not None else ""
    return f'<?xml version="1.0" encoding="utf-8" standalone="no"?>\n<modDesc{dv}>{"".join(parts)}</modDesc>'


def basic_mod_members(**desc_overrides) -> dict:
    return {
        "modDesc.xml": mod_desc_xml(**desc_overrides),
        "icon.dds": image_bytes(),
        "scripts/main.lua": "print('hello')\n",
    }


@pytest.fixture
def mods_dir(tmp_path):
    """A fresh mods folder under tmp_path."""
    mods = tmp_path / "mods"
    mods.mkdir()
    return mods


@pytest.fixture
def basic_zip(mods_dir):
    """A well formed single-player mod archive."""
    return make_zip(mods_dir / "FS22_TestMod.zip", basic_mod_members())
