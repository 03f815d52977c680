"""Image engine - the transcode pipeline stages.

This package holds the pure, Qt-free parts of the pipeline:
- Decoded bitmap model (image_buffer)
- Aspect-preserving downscale (resizer)
- Output codec selection (format_resolver)
- Encoding to PNG/JPEG/HEIC and the fallback raster (compressor)

Usage:
    from clipshrink.image_engine import decode_image_bytes, resize_image, compress_image

    image = decode_image_bytes(data)
    image = resize_image(image, 1000, None)
    out = compress_image(image, OutputFormat.PNG, quality=0.8, strip_metadata=True)
"""

from .compressor import compress_image, encode_fallback
from .format_resolver import mime_type_for, resolve_format
from .image_buffer import ImageBuffer, decode_image_bytes
from .resizer import resize_image, target_dimensions

__all__ = [
    "ImageBuffer",
    "compress_image",
    "decode_image_bytes",
    "encode_fallback",
    "mime_type_for",
    "resize_image",
    "resolve_format",
    "target_dimensions",
]
