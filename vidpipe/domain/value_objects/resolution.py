"""Frame size value object."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, Field

RESOLUTION_PATTERN = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


class Resolution(BaseModel):
    """Width and height of a video frame.

    Examples:
        >>> Resolution.parse("1280x720").height
        720
        >>> str(Resolution.parse("1920X1080"))
        '1920x1080'
    """

    model_config = ConfigDict(frozen=True)

    width: int = Field(gt=0)
    height: int = Field(gt=0)

    @classmethod
    def parse(cls, value: str) -> Resolution:
        """Parse a 'WIDTHxHEIGHT' string.

        Raises:
            ValueError: If the string is not in WIDTHxHEIGHT form.
        """
        match = RESOLUTION_PATTERN.match(value)
        if not match:
            raise ValueError(f"Invalid resolution '{value}', expected WIDTHxHEIGHT")
        return cls(width=int(match.group(1)), height=int(match.group(2)))

    @classmethod
    def pixel_count_of(cls, value: str) -> int:
        """Pixel count of a resolution string, 0 when unparseable."""
        try:
            return cls.parse(value).pixel_count
        except ValueError:
            return 0

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def short_label(self) -> str:
        """Conventional '<height>p' name, e.g. '720p'."""
        return f"{self.height}p"

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"
