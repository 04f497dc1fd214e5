"""Template Source: the immutable tree of template entries a project is built from.

A source is assembled once (from the bundled ``templates/`` payload, from a
local directory, or from in-memory entries) and then shared read-only across
any number of generation runs.

A tree may carry a ``template.json`` next to its files.  It is never written
to the generated project; its ``ignore`` patterns are applied when the
source is built.
"""

from __future__ import annotations

import fnmatch
import json
import stat
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import TemplateConfigError


TEMPLATE_SUFFIX = ".tmpl"

TEMPLATE_CONFIG_NAME = "template.json"

DEFAULT_TEMPLATE_ROOT = "template"

DEFAULT_FILE_MODE = 0o644

DEFAULT_IGNORE: tuple[str, ...] = (".git", "__pycache__", "*.pyc", ".DS_Store")

_BUNDLED_TEMPLATE_DIR = Path(__file__).parent / "templates"


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TemplateEntry:
    """One file of a template tree.

    ``path`` is the posix relative path inside the tree and may embed
    substitution tokens (``cmd/{{ PluginName }}/main.go.tmpl``).
    """

    path: str
    content: bytes
    parameterized: bool = False
    mode: int = DEFAULT_FILE_MODE

    @classmethod
    def create(cls, path: str, content: bytes | str, mode: int = DEFAULT_FILE_MODE) -> "TemplateEntry":
        """Build an entry, deriving ``parameterized`` from the marker suffix."""
        if isinstance(content, str):
            content = content.encode("utf-8")
        return cls(
            path=path,
            content=content,
            parameterized=path.endswith(TEMPLATE_SUFFIX),
            mode=mode,
        )

    @property
    def has_path_tokens(self) -> bool:
        """True when the path itself needs rendering."""
        return "{{" in self.path


# ---------------------------------------------------------------------------
# template.json
# ---------------------------------------------------------------------------


class TemplateConfig(BaseModel):
    """Contents of a tree's ``template.json``.

    ``variables`` and ``hooks`` are read so a tree written for other
    generators loads cleanly, but neither is applied: the parameter set is
    fixed and nothing is executed after generation.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    description: str = ""
    ignore: list[str] = Field(default_factory=list, description="fnmatch patterns excluded from the tree")
    variables: dict[str, dict] = Field(default_factory=dict)
    hooks: dict[str, list[str]] = Field(default_factory=dict)

    @classmethod
    def parse(cls, content: bytes, origin: str) -> "TemplateConfig":
        """Parse raw ``template.json`` bytes.

        Raises:
            TemplateConfigError: On invalid JSON or an unexpected shape.
        """
        try:
            data = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise TemplateConfigError(origin, f"not valid JSON ({exc})") from exc
        if not isinstance(data, dict):
            raise TemplateConfigError(origin, "expected a JSON object")
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            first = exc.errors()[0]
            loc = ".".join(str(part) for part in first["loc"])
            raise TemplateConfigError(origin, f"{loc}: {first['msg']}") from exc


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------


class TemplateSource:
    """An ordered, read-only collection of :class:`TemplateEntry` objects.

    Entries are kept sorted by path so every walk over the source visits
    them in the same order.

    ``template_root`` names the directory segment that holds the template
    payload (``pkg/template/go.mod.tmpl``).  It is removed when destination
    paths are computed, so that entry is written to ``pkg/go.mod``.
    """

    def __init__(
        self,
        entries: Iterable[TemplateEntry],
        name: str = "custom",
        origin: Path | None = None,
        *,
        template_root: str | None = None,
        config: TemplateConfig | None = None,
    ) -> None:
        ordered = sorted(entries, key=lambda entry: entry.path)
        for previous, current in zip(ordered, ordered[1:]):
            if previous.path == current.path:
                raise ValueError(f"Duplicate template entry: {current.path}")
        self._entries: tuple[TemplateEntry, ...] = tuple(ordered)
        self._index = {entry.path: entry for entry in self._entries}
        self.name = name
        self.origin = origin
        self.template_root = template_root
        self.config = config or TemplateConfig()

    # -- Constructors --------------------------------------------------------

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[TemplateEntry],
        name: str = "custom",
        *,
        template_root: str | None = DEFAULT_TEMPLATE_ROOT,
    ) -> "TemplateSource":
        """Build an in-memory source.

        Paths are given as they sit in the template tree; the
        ``template_root`` segment, when present, is dropped on output.
        """
        kept, config = _split_config(list(entries), template_root)
        return cls(kept, name=name, template_root=template_root, config=config)

    @classmethod
    def from_directory(
        cls,
        directory: str | Path,
        name: str | None = None,
        *,
        ignore: Iterable[str] = DEFAULT_IGNORE,
        template_root: str | None = None,
    ) -> "TemplateSource":
        """Read every regular file below *directory* into a source.

        Args:
            directory: Root of the template tree.
            name: Display name; defaults to the ``template.json`` name,
                then to the directory name.
            ignore: ``fnmatch`` patterns matched against each path segment.
                A match on any segment excludes the file.
            template_root: Payload segment dropped from destination paths.
                The directory itself is the root by default.

        Raises:
            FileNotFoundError: If *directory* does not exist.
            NotADirectoryError: If *directory* is not a directory.
            TemplateConfigError: If the tree's ``template.json`` is malformed.
        """
        root = Path(directory)
        if not root.exists():
            raise FileNotFoundError(f"Template directory does not exist: {root}")
        if not root.is_dir():
            raise NotADirectoryError(f"Template path is not a directory: {root}")

        patterns = tuple(ignore)
        entries: list[TemplateEntry] = []
        for file_path in root.rglob("*"):
            rel = PurePosixPath(file_path.relative_to(root).as_posix())
            if _is_ignored(rel, patterns) or not file_path.is_file():
                continue
            mode = stat.S_IMODE(file_path.stat().st_mode)
            entries.append(TemplateEntry.create(str(rel), file_path.read_bytes(), mode=mode))

        kept, config = _split_config(entries, template_root, origin=root)
        return cls(
            kept,
            name=name or config.name or root.name,
            origin=root,
            template_root=template_root,
            config=config,
        )

    # -- Access --------------------------------------------------------------

    @property
    def entries(self) -> tuple[TemplateEntry, ...]:
        return self._entries

    def get(self, path: str) -> TemplateEntry | None:
        return self._index.get(path)

    def destination_path(self, entry: TemplateEntry) -> str:
        """The entry path with the template root segment removed."""
        return strip_template_root(entry.path, self.template_root)

    def __iter__(self) -> Iterator[TemplateEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TemplateSource(name={self.name!r}, entries={len(self._entries)})"


def strip_template_root(path: str, template_root: str | None) -> str:
    """Drop the first directory segment equal to *template_root*.

    Examples::

        strip_template_root("pkg/template/security.txt.tmpl", "template") -> "pkg/security.txt.tmpl"
        strip_template_root("template/go.mod.tmpl", "template") -> "go.mod.tmpl"
        strip_template_root("go.mod.tmpl", "template") -> "go.mod.tmpl"
    """
    if not template_root:
        return path
    parts = path.split("/")
    for index, part in enumerate(parts[:-1]):
        if part == template_root:
            return "/".join(parts[:index] + parts[index + 1:])
    return path


# ---------------------------------------------------------------------------
# Bundled templates
# ---------------------------------------------------------------------------


def available_templates(template_root: Path = _BUNDLED_TEMPLATE_DIR) -> list[str]:
    """Return the sorted names of the template trees shipped with the package."""
    if not template_root.is_dir():
        return []
    return sorted(p.name for p in template_root.iterdir() if p.is_dir() and not p.name.startswith("_"))


def load_bundled_source(name: str = "mixin") -> TemplateSource:
    """Load one of the bundled template trees by name.

    Raises:
        FileNotFoundError: If no bundled template of that name exists.
    """
    directory = _BUNDLED_TEMPLATE_DIR / name
    if not directory.is_dir():
        choices = ", ".join(available_templates()) or "none"
        raise FileNotFoundError(f"Unknown bundled template '{name}' (available: {choices})")
    return TemplateSource.from_directory(directory, name=name)


def _is_ignored(rel: PurePosixPath, patterns: tuple[str, ...]) -> bool:
    return any(fnmatch.fnmatch(part, pattern) for part in rel.parts for pattern in patterns)


def _split_config(
    entries: list[TemplateEntry],
    template_root: str | None,
    origin: Path | None = None,
) -> tuple[list[TemplateEntry], TemplateConfig]:
    """Pull ``template.json`` out of *entries* and apply its ignore list.

    Ignore patterns match the payload-relative path or any of its segments.
    """
    config = TemplateConfig()
    payload: list[tuple[str, TemplateEntry]] = []
    for entry in entries:
        rel = strip_template_root(entry.path, template_root)
        if rel == TEMPLATE_CONFIG_NAME:
            where = origin / entry.path if origin is not None else entry.path
            config = TemplateConfig.parse(entry.content, str(where))
            continue
        payload.append((rel, entry))

    patterns = tuple(config.ignore)
    if not patterns:
        return [entry for _, entry in payload], config
    kept = [
        entry
        for rel, entry in payload
        if not any(fnmatch.fnmatch(rel, pattern) for pattern in patterns)
        and not _is_ignored(PurePosixPath(rel), patterns)
    ]
    return kept, config
