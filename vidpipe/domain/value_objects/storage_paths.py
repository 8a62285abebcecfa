"""Object key layout for chunks, merged uploads, renditions and thumbnails."""

from pathlib import PurePosixPath


def chunk_path(session_id: str, index: int) -> str:
    """Key of one uploaded chunk in the chunks bucket."""
    return f"{session_id}/chunk_{index:06d}"


def merged_asset_path(session_id: str, filename: str) -> str:
    """Key of the reassembled upload in the uploads bucket.

    Only the final path component of the client-supplied name is kept.
    """
    name = PurePosixPath(filename.replace("\\", "/")).name or "source"
    return f"{session_id}/{name}"


def rendition_file_name(job_id: str, resolution_label: str, output_format: str) -> str:
    """File name the transform writes, e.g. '<job>_720p.mp4'."""
    return f"{job_id}_{resolution_label}.{output_format.lower()}"


def rendition_path(job_id: str, file_name: str) -> str:
    """Key of a rendition in the renditions bucket."""
    return f"{job_id}/{file_name}"


def thumbnail_path(session_id: str, order: int) -> str:
    """Key of a captured thumbnail in the thumbnails bucket."""
    return f"{session_id}/thumb_{order}.jpg"
