"""
Module for utility functions.

This module contains helpers shared across the simulator: time formatting, value-comparable enums,
pydantic base models and path types, yaml (de)serialization and wiring pydantic models into
argparse.

"""

from datetime import datetime, timedelta, timezone
import re
import sys
import uuid
import argparse
from pathlib import Path
from collections.abc import Callable
from typing import Annotated as A, TypeVar, TypeAlias
from enum import Enum
from pydantic import (
    BaseModel, AfterValidator, ConfigDict, AwareDatetime, ValidationError, ValidationInfo,
)
from pydantic_settings import BaseSettings, SettingsConfigDict, CliApp, CliSettingsSource, SettingsError
import yaml
from yaml import YAMLError
from schedsim.job import Job


def convert_seconds_to_hhmmss(seconds):
    """Convert seconds to time format: 3661s -> 1:01:01"""
    td = timedelta(seconds=int(seconds))
    h, m, s = str(td).split(':')
    return f"{h}:{m}:{s}"


def create_casename(prefix=''):
    """
    Generate a unique case name.

    Parameters
    ----------
    prefix : str, optional
        Prefix to be added to the case name.

    Returns
    -------
    str
        Unique case name.
    """
    return prefix + str(uuid.uuid4())[:7]


class ValueComparableEnum(Enum):
    def __eq__(self, other):
        if isinstance(other, Enum):
            return self.value == other.value
        return self.value == other

    def __hash__(self):  # required if you override __eq__
        return hash(self.value)


def validate_resolved_path(path: str | Path, info: ValidationInfo):
    context = info.context or {}
    path = Path(path).expanduser()
    if context.get('base_path'):
        base_path = Path(context["base_path"]).expanduser().resolve()
    else:
        base_path = Path.cwd()
    return (base_path / path).resolve()


ResolvedPath = A[Path, AfterValidator(validate_resolved_path)]
"""
Resolve a path, and expand ~ in the path string.
Paths can be resolved relative to specific path instead of cwd by passing
`context={"base_path": "my/path"}` in model_validate().
"""


class SimBaseModel(BaseModel):
    """ Base Pydantic model with shared config """
    model_config = ConfigDict(
        use_attribute_docstrings=True,
    )


T = TypeVar("T", bound=BaseModel)


def pydantic_add_args(
    parser: argparse.ArgumentParser, model_cls: type[T],
    model_config: SettingsConfigDict | None = None,
) -> Callable[..., T]:
    """
    Register one CLI flag per field of `model_cls` on `parser` (kebab-case, booleans as implicit
    flags) and return a validator turning the parsed argparse namespace into a `model_cls`.

    `init_data`, e.g. the contents of a yaml config file, provides the values the flags do not set.
    The config models stay plain pydantic models, pydantic-settings is only used for the flags.
    """
    model_config_dict = SettingsConfigDict({
        "cli_implicit_flags": True,
        "cli_kebab_case": True,
        "title": model_cls.__name__,
        **(model_config or {}),
        "cli_parse_args": False,  # Don't automatically parse args
    })

    class SettingsModel(model_cls, BaseSettings):
        @classmethod
        def settings_customise_sources(cls, settings_cls,
                                       init_settings, env_settings, dotenv_settings, file_secret_settings,
                                       ):
            return (init_settings,)  # flags and init data only, never the environment

        model_config = model_config_dict

    cli_settings_source = CliSettingsSource(SettingsModel, root_parser=parser)

    def model_args_validator(args: argparse.Namespace, init_data: dict | None = None):
        try:
            model = CliApp.run(SettingsModel,
                               cli_args=args,
                               cli_settings_source=cli_settings_source,
                               **(init_data or {}),
                               )
            # Return the plain model, keeping which fields were explicitly set
            return model_cls.model_validate(model.model_dump(exclude_unset=True))
        except (ValidationError, SettingsError) as err:
            print(f"Invalid {model_cls.__name__}:")
            print(err)
            sys.exit(1)
    return model_args_validator


SubParsers: TypeAlias = "argparse._SubParsersAction[argparse.ArgumentParser]"
""" Type of the object returned by parser.add_subparsers(), each command adds its own parser to it """


def _reads_back_as_other(value: str) -> bool:
    """ True if yaml would load `value` unquoted as something other than the same string """
    try:
        return yaml.safe_load(value) != value
    except YAMLError:
        return True


def yaml_dump(data):
    """
    Dump a config dict as block style yaml, keeping the key order of the model.
    Strings such as "none", "8" or paths are quoted so they load back unchanged.
    """
    class ConfigDumper(yaml.SafeDumper):
        def represent_str(self, value):
            if "\n" not in value and (_reads_back_as_other(value) or not re.fullmatch(r"[\w.-]+", value)):
                return self.represent_scalar('tag:yaml.org,2002:str', value, style='"')
            return super().represent_str(value)

        def increase_indent(self, flow=False, indentless=False):
            # Indent list items under their key
            return super().increase_indent(flow, False)

    ConfigDumper.add_representer(str, ConfigDumper.represent_str)
    return yaml.dump(data, Dumper=ConfigDumper, sort_keys=False, indent=2, allow_unicode=True)


def read_yaml(config_file: str | None) -> dict:
    """ Load a yaml mapping from a file, or from stdin if config_file is "-". No file gives {} """
    if config_file is None:
        return {}
    text = sys.stdin.read() if config_file == "-" else Path(config_file).read_text()
    result = yaml.safe_load(text) if text.strip() else {}
    if not isinstance(result, dict):
        raise ValueError(f"{config_file} must contain a mapping of config keys, got {type(result).__name__}")
    return result


def read_yaml_parsed(cls: type[T], config_file=None) -> dict:
    """
    Load a config file and validate it against `cls`, for use as init data of the CLI model.

    Relative paths in the file (e.g. `trace`) are resolved against the directory of the file, not
    the current directory. Prints the error and exits with status 1 on invalid input.
    """
    try:
        yaml_data = read_yaml(config_file)
        if not yaml_data:
            return {}
        base_path = Path(config_file).parent if config_file != "-" else None
        model = cls.model_validate(yaml_data, context={"base_path": base_path})
    except (OSError, ValidationError, ValueError, YAMLError) as err:
        print(f'Invalid config file "{config_file}":')
        print(err)
        sys.exit(1)
    return model.model_dump(mode='json', exclude_unset=True)


class WorkloadData(SimBaseModel):
    """
    Represents a workload, the list of jobs read from a trace with some metadata. Returned by the
    dataloaders load_data() function.

    jobs:
        The parsed jobs, in file order.

    skipped:
        Number of records dropped because they need more nodes than the cluster has.

    header:
        `Key: value` pairs from the trace's comment header (e.g. MaxNodes, UnixStartTime).

    start_date
        The actual date that simulation time 0 represents, if the trace records it.
    """
    jobs: list[Job]
    skipped: int = 0
    header: dict[str, str] = {}
    start_date: A[AwareDatetime | None, AfterValidator(lambda d: d.astimezone(timezone.utc) if d else d)] = None

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
    )


def unix_to_datetime(value: str | int | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)
