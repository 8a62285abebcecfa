"""Domain value objects."""

from vidpipe.domain.value_objects.command_template import (
    KNOWN_PLACEHOLDERS,
    REQUIRED_PLACEHOLDERS,
    CommandBindings,
    render_command,
    validate_template,
)
from vidpipe.domain.value_objects.resolution import Resolution
from vidpipe.domain.value_objects.storage_paths import (
    chunk_path,
    merged_asset_path,
    rendition_file_name,
    rendition_path,
    thumbnail_path,
)

__all__ = [
    "Resolution",
    "CommandBindings",
    "render_command",
    "validate_template",
    "REQUIRED_PLACEHOLDERS",
    "KNOWN_PLACEHOLDERS",
    "chunk_path",
    "merged_asset_path",
    "rendition_file_name",
    "rendition_path",
    "thumbnail_path",
]
