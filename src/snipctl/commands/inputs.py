from __future__ import annotations

from pathlib import Path
from typing import Sequence

from ..config.model import VerifyConfig
from ..core.context import RunContext
from ..core.errors import ConfigError
from ..core.logging import log_event
from ..extract.model import Document
from ..extract.scanner import extract

_GLOB_CHARS = frozenset("*?[")


def playground_pages(root: Path) -> list[Path]:
    pages = [root / "Contents.swift"] if (root / "Contents.swift").is_file() else []
    pages.extend(sorted(p for p in root.glob("Pages/*/Contents.swift") if p.is_file()))
    return pages


def _expand(raw: str, globs: Sequence[str], cwd: Path) -> list[Path]:
    candidate = Path(raw).expanduser()
    if _GLOB_CHARS.intersection(raw):
        if candidate.is_absolute():
            anchor = Path(candidate.anchor)
            return sorted(p for p in anchor.glob(str(candidate.relative_to(anchor))) if p.is_file())
        return sorted(p for p in cwd.glob(raw) if p.is_file())
    path = candidate if candidate.is_absolute() else cwd / candidate
    if path.is_dir() and path.suffix == ".playground":
        return playground_pages(path)
    if path.is_dir():
        found: set[Path] = set()
        for pattern in globs:
            found.update(p for p in path.rglob(pattern) if p.is_file())
        return sorted(found)
    if path.is_file():
        return [path]
    raise ConfigError(f"cannot read path: {raw}", kind="path_error")


def discover_documents(paths: Sequence[str], globs: Sequence[str], cwd: Path) -> list[Path]:
    """Expand files, directories, playgrounds and glob expressions, keeping first-seen order."""
    if not paths:
        raise ConfigError("no input paths given")
    found: list[Path] = []
    seen: set[Path] = set()
    for raw in paths:
        matches = _expand(raw, globs, cwd)
        if not matches:
            raise ConfigError(f"no documents matched `{raw}` (globs: {', '.join(globs)})", kind="path_error")
        for path in matches:
            key = path.resolve()
            if key in seen:
                continue
            seen.add(key)
            found.append(path)
    return found


def display_path(path: Path, cwd: Path) -> str:
    try:
        return path.resolve().relative_to(cwd).as_posix()
    except ValueError:
        return path.resolve().as_posix()


def load_document(ctx: RunContext, path: Path, config: VerifyConfig) -> Document:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"cannot read document {path}: {exc}", kind="path_error") from exc
    document = extract(text, config.dialect_for(path), path=display_path(path, ctx.cwd))
    for anomaly in document.anomalies:
        log_event(
            ctx,
            "warn",
            "extract",
            "anomaly",
            document=document.path,
            line=anomaly.line,
            kind=anomaly.kind,
            message=anomaly.message,
        )
    return document
