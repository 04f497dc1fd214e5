"""Parameter Set: the validated bindings a template tree is rendered with.

Templates refer to parameters by their token names (``PluginName``,
``ModulePath``, ...).  The Python model uses snake_case fields with the token
names as aliases, so either spelling is accepted on input.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    computed_field,
    field_validator,
    model_validator,
)

from .errors import ParameterValidationError


# ---------------------------------------------------------------------------
# Field catalogue
# ---------------------------------------------------------------------------

FIELD_NAMES: tuple[str, ...] = (
    "PluginName",
    "PluginNameCap",
    "ModulePath",
    "AuthorName",
    "AuthorEmail",
    "Description",
)

_DERIVED_KEYS = frozenset({"PluginNameCap", "plugin_name_cap"})

_TOKEN_NAMES: dict[str, str] = {
    "plugin_name": "PluginName",
    "module_path": "ModulePath",
    "author_name": "AuthorName",
    "author_email": "AuthorEmail",
    "description": "Description",
}

PLUGIN_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_-]*$")

# Names the Porter CLI already uses for its own commands and resources.
RESERVED_NAMES: frozenset[str] = frozenset({
    "porter", "mixin", "mixins", "bundle", "bundles", "installation",
    "installations", "credential", "credentials", "parameter", "parameters",
    "claim", "claims", "agent", "help", "version", "schema", "build",
    "install", "invoke", "upgrade", "uninstall",
})


def capitalize(value: str) -> str:
    """Upper-case the first character, leaving the rest untouched.

    Unlike ``str.capitalize`` this never lower-cases the remainder, so
    ``"myPlugin"`` becomes ``"MyPlugin"``.
    """
    return value[:1].upper() + value[1:]


# ---------------------------------------------------------------------------
# Model
# ---------------------------------------------------------------------------


class ParameterSet(BaseModel):
    """Immutable, validated parameters for one generation run."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    plugin_name: str = Field(
        ..., alias="PluginName", description="Lowercase plugin name, used for directories and identifiers"
    )
    module_path: str = Field(
        ..., alias="ModulePath", description="Import path of the generated module, e.g. github.com/acme/helm3"
    )
    author_name: str = Field(default="", alias="AuthorName")
    author_email: str = Field(default="", alias="AuthorEmail")
    description: str = Field(default="", alias="Description")

    @model_validator(mode="before")
    @classmethod
    def _drop_derived_and_unset(cls, data: Any) -> Any:
        # PluginNameCap is always derived; a supplied value is ignored.
        if isinstance(data, Mapping):
            return {
                key: value
                for key, value in data.items()
                if key not in _DERIVED_KEYS and value is not None
            }
        return data

    @field_validator("plugin_name")
    @classmethod
    def _check_plugin_name(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        if not PLUGIN_NAME_PATTERN.match(value):
            raise ValueError(
                "must start with a lowercase letter and contain only lowercase "
                "letters, digits, hyphens and underscores"
            )
        if value in RESERVED_NAMES:
            raise ValueError(f"'{value}' is a reserved word")
        return value

    @field_validator("module_path")
    @classmethod
    def _check_module_path(cls, value: str) -> str:
        if not value:
            raise ValueError("must not be empty")
        if any(ch.isspace() for ch in value):
            raise ValueError("must not contain whitespace")
        if any(not segment for segment in value.split("/")):
            raise ValueError("path segments separated by '/' must not be empty")
        return value

    @computed_field(alias="PluginNameCap")  # type: ignore[misc]
    @property
    def plugin_name_cap(self) -> str:
        """``PluginName`` with its first letter upper-cased."""
        return capitalize(self.plugin_name)

    def as_context(self) -> dict[str, str]:
        """Return the non-empty values keyed by token name.

        Empty optional fields are left out so that a template can only
        resolve them through an inline ``default``.
        """
        return {
            name: value
            for name, value in self.model_dump(by_alias=True).items()
            if value
        }


# ---------------------------------------------------------------------------
# Validation entry point
# ---------------------------------------------------------------------------


def validate_parameters(raw: Mapping[str, Any] | ParameterSet) -> ParameterSet:
    """Validate a raw mapping into a :class:`ParameterSet`.

    Args:
        raw: Mapping keyed by token names (``PluginName``) or field names
            (``plugin_name``).  ``None`` values count as unset.

    Returns:
        The validated, immutable parameter set.

    Raises:
        ParameterValidationError: Naming the first field that failed and why.
    """
    if isinstance(raw, ParameterSet):
        return raw
    try:
        return ParameterSet.model_validate(dict(raw))
    except ValidationError as exc:
        first = exc.errors()[0]
        loc = str(first["loc"][0]) if first["loc"] else "<parameters>"
        reason = first["msg"].removeprefix("Value error, ")
        raise ParameterValidationError(_TOKEN_NAMES.get(loc, loc), reason) from exc
