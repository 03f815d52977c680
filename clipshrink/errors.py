"""Outcome taxonomy for the clipboard transcode pipeline.

Pipeline failures derive from `ClipShrinkError` and carry the notification
title/body shown to the user. `NoImagePresent` is deliberately outside that
hierarchy: an empty clipboard is a no-op outcome, not a failure.
"""


class NoImagePresent(Exception):
    """The clipboard holds no image to process."""

    title = "No Image Found"
    body = "There's no image on the clipboard to shrink."


class ClipShrinkError(Exception):
    """Base class for failures that abort the transcode pipeline."""

    title = "Processing Failed"
    body = "Failed to process the clipboard image."


class DecodeFailure(ClipShrinkError):
    """Clipboard bytes exist but cannot be decoded into a bitmap."""

    body = "Failed to read the clipboard image."


class EncodeFailure(ClipShrinkError):
    """The compressor could not produce output for the requested format."""

    body = "Failed to compress the clipboard image."


class WriteFailure(ClipShrinkError):
    """The clipboard rejected the new representation(s)."""

    body = "Failed to write the clipboard image."
