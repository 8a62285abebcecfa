"""Encoding profile domain model."""

from uuid import uuid4

from pydantic import BaseModel, Field, field_validator

from vidpipe.domain.value_objects.command_template import validate_template
from vidpipe.domain.value_objects.resolution import Resolution


class EncodingProfile(BaseModel):
    """A named transcoding recipe administered outside this package.

    ``is_active`` is a soft-delete flag: inactive profiles stay readable for
    history but cannot start new jobs.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(min_length=1)
    description: str = ""
    resolution: str = Field(description="Target frame size, e.g. '1280x720'")
    bitrate_kbps: int = Field(gt=0)
    format: str = Field(min_length=1, description="Output container, e.g. 'mp4'")
    command_template: str = Field(
        description="ffmpeg arguments with {inputPath} and {outputPath} placeholders"
    )
    is_active: bool = True
    apply_drm: bool = False

    @field_validator("resolution")
    @classmethod
    def _parse_resolution(cls, value: str) -> str:
        return str(Resolution.parse(value))

    @field_validator("command_template")
    @classmethod
    def _validate_template(cls, value: str) -> str:
        return validate_template(value)
