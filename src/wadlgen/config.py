"""Customization hooks for code generation.

``Config`` has one method per extension point, each with a default that
produces plain bindings. Subclass it and override what you need, or load
a ``YamlConfig`` from a file for the common cases.
"""

import logging
from pathlib import Path
from typing import Callable, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from wadlgen.parser.base import Param, RepresentationDef

logger = logging.getLogger(__name__)

ContainerKind = Literal["request", "response", "representation"]


class ConfigError(Exception):
    """A configuration file could not be loaded."""


class Config:
    """Default generation behavior; every hook can be overridden."""

    def __init__(self, async_: bool = False, strip_code_examples: bool = False):
        self.async_ = async_
        self.strip_code_examples = strip_code_examples

    def override_type_name(self, container, type_name: str, param_name: str) -> str | None:
        """Return a Python type to use instead of the resolved one."""
        return None

    def nillable(self, param: Param) -> bool:
        return not param.required

    def param_accessor_rename(self, param_name: str, ret_type: str) -> str | None:
        """Return a name for the link accessor generated for ``param_name``."""
        return None

    def map_type_for_accessor(self, field_type: str) -> tuple[str, str] | None:
        """Return ``(type, function)`` to convert what a link accessor returns."""
        return None

    def map_type_for_response(self, method_name: str, ret_type: str) -> tuple[str, str] | None:
        """Return ``(type, function)`` to convert what a method returns."""
        return None

    def representation_visibility(self, name: str) -> bool:
        return True

    def resource_type_visibility(self, name: str) -> bool:
        return True

    def accessor_visibility(self, accessor: str, field_type: str) -> bool:
        return True

    def method_visibility(self, name: str, ret_type: str) -> bool:
        return True

    def deprecated_param(self, param: Param) -> bool:
        return False

    def options_enum_name(self, param: Param, is_taken: Callable[[str], bool]) -> str | None:
        """Return the enum class name for ``param``'s options, or None for the default."""
        return None

    def reformat_docstring(self, text: str) -> str:
        return text

    def convert_to_multipart(self, type_name: str, value: str) -> str | None:
        """Return an expression turning ``value`` into a multipart part."""
        return None

    def generate_representation_extras(self, representation: RepresentationDef, name: str) -> list[str]:
        """Extra source lines emitted after a representation class."""
        return []

    def extend_accessor(self, param: Param, accessor_name: str, ret_type: str) -> list[str]:
        """Extra source lines emitted inside a record after a link accessor."""
        return []

    def extend_method(self, parent_id: str, name: str, ret_type: str) -> list[str]:
        """Extra source lines emitted inside a resource type after a method."""
        return []


class TypeOverride(BaseModel):
    """Replace the type of matching parameters; unset keys match anything."""

    param: str | None = None
    type_name: str | None = None
    container: ContainerKind | None = None
    type: str


class ConfigFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    async_: bool = Field(default=False, alias="async")
    strip_code_examples: bool = False
    type_overrides: list[TypeOverride] = Field(default_factory=list)
    accessor_renames: dict[str, str] = Field(default_factory=dict)
    private: list[str] = Field(default_factory=list)
    deprecated_params: list[str] = Field(default_factory=list)
    enum_names: dict[str, str] = Field(default_factory=dict)


class YamlConfig(Config):
    """Config driven by a YAML file.

    Example::

        async: false
        type_overrides:
          - param: owner
            type: str
        accessor_renames:
          owner_link: owner_person
        private: [PersonFull]
        deprecated_params: [karma]
        enum_names:
          format: OutputFormat
    """

    def __init__(self, settings: ConfigFile):
        super().__init__(async_=settings.async_, strip_code_examples=settings.strip_code_examples)
        self.settings = settings

    @classmethod
    def load(cls, path: Path) -> "YamlConfig":
        try:
            data = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
            settings = ConfigFile.model_validate(data)
        except OSError as e:
            raise ConfigError(f"cannot read {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {path}: {e}") from e
        except ValidationError as e:
            raise ConfigError(f"invalid configuration in {path}: {e}") from e
        logger.debug("Loaded configuration from %s", path)
        return cls(settings)

    def override_type_name(self, container, type_name: str, param_name: str) -> str | None:
        for rule in self.settings.type_overrides:
            if rule.param is not None and rule.param != param_name:
                continue
            if rule.type_name is not None and rule.type_name != type_name:
                continue
            if rule.container is not None and rule.container != container.kind:
                continue
            return rule.type
        return None

    def param_accessor_rename(self, param_name: str, ret_type: str) -> str | None:
        return self.settings.accessor_renames.get(param_name)

    def representation_visibility(self, name: str) -> bool:
        return name not in self.settings.private

    def resource_type_visibility(self, name: str) -> bool:
        return name not in self.settings.private

    def accessor_visibility(self, accessor: str, field_type: str) -> bool:
        return accessor not in self.settings.private

    def method_visibility(self, name: str, ret_type: str) -> bool:
        return name not in self.settings.private

    def deprecated_param(self, param: Param) -> bool:
        return param.name in self.settings.deprecated_params

    def options_enum_name(self, param: Param, is_taken: Callable[[str], bool]) -> str | None:
        return self.settings.enum_names.get(param.name)
