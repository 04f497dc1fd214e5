"""skeletor scaffolder -- turns a template tree into a ready-to-build project.

The engine validates a small set of named parameters, renders every entry of
a Template Source (content and path), drops the template root segment,
strips the ``.tmpl`` marker and writes the result under a destination root.

Quick usage::

    from skeletor.scaffolder import Generator, load_bundled_source

    generator = Generator(load_bundled_source("mixin"))
    result = generator.generate(
        {"PluginName": "helm3", "ModulePath": "github.com/acme/helm3"},
        "./helm3",
    )
    result.raise_for_error()
"""

from skeletor.scaffolder.errors import (
    DestinationConflictError,
    DuplicateDestinationError,
    GenerationError,
    ParameterValidationError,
    PathEscapeError,
    RenderError,
    SkeletorError,
    TemplateConfigError,
    WriteError,
)
from skeletor.scaffolder.generator import Generator, generate
from skeletor.scaffolder.materializer import (
    ConflictPolicy,
    GenerationResult,
    RenderedFile,
    TreeMaterializer,
    WrittenFile,
)
from skeletor.scaffolder.params import ParameterSet, validate_parameters
from skeletor.scaffolder.renderer import TemplateRenderer
from skeletor.scaffolder.source import (
    TEMPLATE_SUFFIX,
    TemplateConfig,
    TemplateEntry,
    TemplateSource,
    available_templates,
    load_bundled_source,
    strip_template_root,
)

__all__ = [
    "TEMPLATE_SUFFIX",
    "ConflictPolicy",
    "DestinationConflictError",
    "DuplicateDestinationError",
    "GenerationError",
    "GenerationResult",
    "Generator",
    "ParameterSet",
    "ParameterValidationError",
    "PathEscapeError",
    "RenderError",
    "RenderedFile",
    "SkeletorError",
    "TemplateConfig",
    "TemplateConfigError",
    "TemplateEntry",
    "TemplateRenderer",
    "TemplateSource",
    "TreeMaterializer",
    "WriteError",
    "WrittenFile",
    "available_templates",
    "generate",
    "load_bundled_source",
    "strip_template_root",
    "validate_parameters",
]
