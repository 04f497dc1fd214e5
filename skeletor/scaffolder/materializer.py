"""Tree Materializer: writes a rendered Template Source into a destination root.

Entries are visited in the source's sorted order.  Every destination path
is planned first: the template root segment is dropped, tokens are rendered,
the ``.tmpl`` marker is stripped from the final segment, and the result is
checked against the destination root and against the other entries.  Only
then is content rendered and written with the entry's permission bits.

A planning failure writes nothing.  A later failure stops the walk; files
already written stay in place and are listed in the returned
:class:`GenerationResult`.  There is no rollback.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path, PurePosixPath

from rich.console import Console

from .. import utils
from .errors import (
    DestinationConflictError,
    DuplicateDestinationError,
    GenerationError,
    PathEscapeError,
    RenderError,
    WriteError,
)
from .params import ParameterSet
from .renderer import TemplateRenderer
from .source import TEMPLATE_SUFFIX, TemplateEntry, TemplateSource, strip_template_root


class ConflictPolicy(str, Enum):
    """What to do when a destination file already exists."""

    OVERWRITE = "overwrite"
    FAIL = "fail"
    SKIP = "skip"


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RenderedFile:
    """One entry after rendering, before it is written."""

    path: str
    content: bytes
    mode: int
    source: str


@dataclass(frozen=True)
class WrittenFile:
    """Record of a file written (or, in dry-run mode, that would be written)."""

    path: str
    source: str
    mode: int
    size: int


@dataclass
class GenerationResult:
    """Outcome of one materialization run."""

    destination: Path
    files: list[WrittenFile] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    error: GenerationError | None = None
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def paths(self) -> list[str]:
        """Destination-relative paths in the order they were written."""
        return [f.path for f in self.files]

    def raise_for_error(self) -> "GenerationResult":
        """Re-raise the recorded failure, if any; otherwise return ``self``."""
        if self.error is not None:
            raise self.error
        return self

    def summary(self) -> dict[str, str]:
        """Key/value overview suitable for a summary table."""
        label = "Files planned" if self.dry_run else "Files written"
        data = {
            "Destination": str(self.destination),
            label: str(len(self.files)),
            "Bytes": str(sum(f.size for f in self.files)),
        }
        if self.skipped:
            data["Skipped (existing)"] = str(len(self.skipped))
        data["Status"] = "ok" if self.success else f"failed at {self.error.path}"
        return data


# ---------------------------------------------------------------------------
# TreeMaterializer
# ---------------------------------------------------------------------------


class TreeMaterializer:
    """Renders every entry of a Template Source and writes it to disk.

    Args:
        renderer: Shared renderer; a fresh one is created when omitted.
        conflict_policy: Behaviour for destination files that already exist.
        dry_run: Render and validate everything but write nothing.
        console: Rich console used for progress output.
        quiet: Suppress per-file progress output.
    """

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        *,
        conflict_policy: ConflictPolicy | str = ConflictPolicy.OVERWRITE,
        dry_run: bool = False,
        console: Console | None = None,
        quiet: bool = False,
    ) -> None:
        self.renderer = renderer or TemplateRenderer()
        self.conflict_policy = ConflictPolicy(conflict_policy)
        self.dry_run = dry_run
        self.console = console or utils.console
        self.quiet = quiet

    # -- Public API --------------------------------------------------------

    def materialize(
        self,
        source: TemplateSource,
        params: ParameterSet,
        destination: str | Path,
    ) -> GenerationResult:
        """Write every entry of *source* under *destination*.

        All destination paths are resolved before anything is written, so
        path errors and collisions leave the destination untouched.

        Returns:
            The result, holding either the full list of written files or
            the files written before the first failure plus that failure.
        """
        root = Path(destination)
        result = GenerationResult(destination=root, dry_run=self.dry_run)

        try:
            plan = self.plan(source, params, root)
        except GenerationError as exc:
            return self._fail(result, exc)

        if not self.dry_run:
            try:
                root.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                return self._fail(result, WriteError(".", exc))

        for entry, rel_path in plan:
            try:
                rendered = RenderedFile(
                    path=rel_path,
                    content=self.renderer.render(entry, params),
                    mode=entry.mode,
                    source=entry.path,
                )
                target = root / rendered.path
                if self._handle_existing(target, rendered.path):
                    result.skipped.append(rendered.path)
                    self._report(f"[yellow]~[/yellow] Skipping {rendered.path} (exists)")
                    continue
                if not self.dry_run:
                    _write(target, rendered)
            except GenerationError as exc:
                return self._fail(result, exc)

            result.files.append(
                WrittenFile(
                    path=rendered.path,
                    source=entry.path,
                    mode=rendered.mode,
                    size=len(rendered.content),
                )
            )
            verb = "Would write" if self.dry_run else "Created"
            self._report(f"[green]+[/green] {verb} {rendered.path} [dim]{utils.format_mode(rendered.mode)}[/dim]")

        return result

    def plan(
        self,
        source: TemplateSource,
        params: ParameterSet,
        root: Path,
    ) -> list[tuple[TemplateEntry, str]]:
        """Pair every entry with its destination-relative path.

        Raises:
            RenderError: If a path has bad tokens or renders to nothing.
            PathEscapeError: If a path leaves *root*.
            DuplicateDestinationError: If two entries land on the same path.
        """
        planned: list[tuple[TemplateEntry, str]] = []
        claimed: dict[str, str] = {}
        for entry in source:
            rel_path = self.resolve_path(entry, params, root, template_root=source.template_root)
            if rel_path in claimed:
                raise DuplicateDestinationError(entry.path, rel_path, claimed[rel_path])
            claimed[rel_path] = entry.path
            planned.append((entry, rel_path))
        return planned

    def resolve_path(
        self,
        entry: TemplateEntry,
        params: ParameterSet,
        root: Path,
        template_root: str | None = None,
    ) -> str:
        """Return the destination-relative posix path for *entry*.

        The template root segment is dropped, tokens are rendered and the
        ``.tmpl`` marker is stripped from the file name.

        Raises:
            RenderError: If the path has bad tokens or renders to nothing.
            PathEscapeError: If the path is absolute, contains ``..`` or
                resolves outside *root*.
        """
        stripped = strip_template_root(entry.path, template_root)
        rendered = self.renderer.render_path(entry, params, path=stripped)
        pure = PurePosixPath(rendered)
        if pure.is_absolute() or ".." in pure.parts:
            raise PathEscapeError(entry.path, root)

        name = pure.name
        if name.endswith(TEMPLATE_SUFFIX):
            name = name[: -len(TEMPLATE_SUFFIX)]
        if not name or name == ".":
            raise RenderError(entry.path, f"destination path '{rendered}' has an empty file name")
        rel = pure.with_name(name)

        resolved_root = root.resolve()
        resolved = (resolved_root / rel).resolve()
        if resolved != resolved_root and resolved_root not in resolved.parents:
            raise PathEscapeError(entry.path, root)
        return rel.as_posix()

    def _fail(self, result: GenerationResult, error: GenerationError) -> GenerationResult:
        result.error = error
        self._report(f"[bold red]x[/bold red] {error}")
        return result

    # -- Internals ---------------------------------------------------------

    def _handle_existing(self, target: Path, rel_path: str) -> bool:
        """Apply the conflict policy; return True when the entry is skipped."""
        if not target.exists() and not target.is_symlink():
            return False
        if target.is_dir():
            raise WriteError(rel_path, IsADirectoryError(f"destination is a directory: {target}"))
        if self.conflict_policy is ConflictPolicy.FAIL:
            raise DestinationConflictError(rel_path)
        return self.conflict_policy is ConflictPolicy.SKIP

    def _report(self, message: str) -> None:
        if not self.quiet:
            self.console.print(f"  {message}")


def _write(target: Path, rendered: RenderedFile) -> None:
    """Create parent directories, write the bytes and apply the mode."""
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        # Replace, never write through, an existing file.
        if target.is_symlink() or target.is_file():
            target.unlink()
        target.write_bytes(rendered.content)
        os.chmod(target, rendered.mode)
    except OSError as exc:
        raise WriteError(rendered.path, exc) from exc
