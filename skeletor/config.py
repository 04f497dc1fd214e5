"""skeletor configuration.

Typed settings for a generation run, validated at construction time with
Pydantic v2.  The CLI builds one from its flags; library callers can build
one directly or from ``SKELETOR_*`` environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from .scaffolder.materializer import ConflictPolicy
from .scaffolder.source import TemplateSource, load_bundled_source

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class GeneratorConfig(BaseModel):
    """Settings that control how a template tree is materialized.

    The template source is picked from ``template_dir`` when set, otherwise
    from the bundled template named ``template_name``.
    """

    template_name: str = Field(default="mixin", description="Name of a bundled template tree")
    template_dir: Optional[Path] = Field(
        default=None, description="Local template directory; overrides template_name"
    )
    conflict_policy: ConflictPolicy = Field(
        default=ConflictPolicy.OVERWRITE,
        description="What to do with destination files that already exist",
    )
    dry_run: bool = Field(default=False, description="Render everything but write nothing")
    quiet: bool = Field(default=False, description="Suppress per-file progress output")

    def load_source(self) -> TemplateSource:
        """Load the configured Template Source.

        Raises:
            FileNotFoundError: If the directory or bundled template is missing.
            NotADirectoryError: If ``template_dir`` is not a directory.
        """
        if self.template_dir is not None:
            return TemplateSource.from_directory(self.template_dir)
        return load_bundled_source(self.template_name)

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Build a ``GeneratorConfig`` from environment variables.

        Recognised variables (all optional):
            SKELETOR_TEMPLATE, SKELETOR_TEMPLATE_DIR, SKELETOR_ON_CONFLICT,
            SKELETOR_DRY_RUN, SKELETOR_QUIET.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("SKELETOR_TEMPLATE"):
            kwargs["template_name"] = os.environ["SKELETOR_TEMPLATE"]
        if os.environ.get("SKELETOR_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(os.environ["SKELETOR_TEMPLATE_DIR"])
        if os.environ.get("SKELETOR_ON_CONFLICT"):
            kwargs["conflict_policy"] = os.environ["SKELETOR_ON_CONFLICT"].strip().lower()
        kwargs["dry_run"] = os.environ.get("SKELETOR_DRY_RUN", "").strip().lower() in _TRUTHY
        kwargs["quiet"] = os.environ.get("SKELETOR_QUIET", "").strip().lower() in _TRUTHY
        return cls(**kwargs)
