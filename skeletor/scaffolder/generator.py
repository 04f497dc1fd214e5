"""Generator: validates parameters, then materializes the template tree.

A single run is one linear pass with no retries.  The Template Source is
passed in explicitly and never mutated, so one source can back any number
of generators, including concurrent ones writing to disjoint destinations.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.console import Console

from .materializer import GenerationResult, TreeMaterializer
from .params import ParameterSet, validate_parameters
from .renderer import TemplateRenderer
from .source import TemplateSource

if TYPE_CHECKING:
    from ..config import GeneratorConfig


class Generator:
    """Scaffolding orchestrator.

    Args:
        source: Template tree to materialize.
        config: Conflict policy, dry-run and output settings.  Defaults to
            ``GeneratorConfig()``.
        renderer: Renderer to share between runs.
        console: Rich console for progress output.
    """

    def __init__(
        self,
        source: TemplateSource,
        config: "GeneratorConfig | None" = None,
        *,
        renderer: TemplateRenderer | None = None,
        console: Console | None = None,
    ) -> None:
        if config is None:
            from ..config import GeneratorConfig

            config = GeneratorConfig()
        self.source = source
        self.config = config
        self.materializer = TreeMaterializer(
            renderer or TemplateRenderer(),
            conflict_policy=config.conflict_policy,
            dry_run=config.dry_run,
            console=console,
            quiet=config.quiet,
        )

    @classmethod
    def from_config(cls, config: "GeneratorConfig", **kwargs: Any) -> "Generator":
        """Create a generator for the Template Source named by *config*."""
        return cls(config.load_source(), config, **kwargs)

    def generate(
        self,
        raw_params: Mapping[str, Any] | ParameterSet,
        destination: str | Path,
    ) -> GenerationResult:
        """Validate *raw_params* and materialize the source under *destination*.

        Args:
            raw_params: Parameter mapping keyed by token or field name.
            destination: Root directory of the generated project.  Created
                when missing (unless this is a dry run).

        Returns:
            The generation result.  Materialization failures are recorded on
            ``result.error`` together with the files already written.

        Raises:
            ParameterValidationError: Before any file is touched.
        """
        params = validate_parameters(raw_params)
        return self.materializer.materialize(self.source, params, destination)


def generate(
    raw_params: Mapping[str, Any] | ParameterSet,
    destination: str | Path,
    source: TemplateSource,
    config: "GeneratorConfig | None" = None,
) -> GenerationResult:
    """Convenience wrapper around :meth:`Generator.generate`."""
    return Generator(source, config).generate(raw_params, destination)
