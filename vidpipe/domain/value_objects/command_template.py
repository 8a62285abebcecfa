"""Transform command templates and their rendering into argv lists."""

from __future__ import annotations

import re
import shlex
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict

from vidpipe.domain.exceptions import InvalidCommandTemplateException

INPUT_PATH = "inputPath"
OUTPUT_PATH = "outputPath"
RESOLUTION = "resolution"
BITRATE = "bitrate"

REQUIRED_PLACEHOLDERS = (INPUT_PATH, OUTPUT_PATH)
KNOWN_PLACEHOLDERS = frozenset({INPUT_PATH, OUTPUT_PATH, RESOLUTION, BITRATE})

PLACEHOLDER_PATTERN = re.compile(r"\{([A-Za-z]+)\}")


class CommandBindings(BaseModel):
    """Values substituted into a command template for one rendition."""

    model_config = ConfigDict(frozen=True)

    input_path: str
    output_path: str
    resolution: str
    bitrate_kbps: int

    def as_mapping(self) -> dict[str, str]:
        return {
            INPUT_PATH: self.input_path,
            OUTPUT_PATH: self.output_path,
            RESOLUTION: self.resolution,
            BITRATE: f"{self.bitrate_kbps}k",
        }


def validate_template(template: str) -> str:
    """Check a template is tokenizable and names only known placeholders.

    Args:
        template: Argument template, e.g. "-i {inputPath} -s {resolution} {outputPath}".

    Returns:
        The template unchanged.

    Raises:
        InvalidCommandTemplateException: If a required placeholder is missing,
            an unknown placeholder is present, or quoting is unbalanced.
    """
    try:
        shlex.split(template)
    except ValueError as e:
        raise InvalidCommandTemplateException(template, str(e)) from e

    names = set(PLACEHOLDER_PATTERN.findall(template))
    missing = [p for p in REQUIRED_PLACEHOLDERS if p not in names]
    if missing:
        placeholders = ", ".join(f"{{{p}}}" for p in missing)
        raise InvalidCommandTemplateException(template, f"missing {placeholders}")

    unknown = sorted(names - KNOWN_PLACEHOLDERS)
    if unknown:
        placeholders = ", ".join(f"{{{p}}}" for p in unknown)
        raise InvalidCommandTemplateException(template, f"unknown {placeholders}")

    return template


def render_command(template: str, bindings: CommandBindings | Mapping[str, str]) -> list[str]:
    """Render a template into an argv list without invoking a shell.

    The template is tokenized first and placeholders are substituted per
    token, so substituted paths containing spaces or quotes stay a single
    argument.

    Args:
        template: Validated argument template.
        bindings: Placeholder values.

    Returns:
        Argument list, not including the executable.
    """
    validate_template(template)
    values = bindings.as_mapping() if isinstance(bindings, CommandBindings) else bindings

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        try:
            return values[name]
        except KeyError:
            raise InvalidCommandTemplateException(
                template, f"no value bound for {{{name}}}"
            ) from None

    return [PLACEHOLDER_PATTERN.sub(_substitute, token) for token in shlex.split(template)]
