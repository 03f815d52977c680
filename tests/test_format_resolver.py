from clipshrink.config import OutputFormat
from clipshrink.image_engine.format_resolver import mime_type_for, resolve_format


def test_explicit_preference_wins():
    types = {"image/png", "image/jpeg"}
    assert resolve_format(OutputFormat.JPEG, types) == OutputFormat.JPEG
    assert resolve_format(OutputFormat.HEIC, types) == OutputFormat.HEIC
    assert resolve_format(OutputFormat.PNG, {"image/heic"}) == OutputFormat.PNG


def test_original_priority_png_jpeg_heic():
    assert resolve_format(OutputFormat.ORIGINAL, {"image/heic", "image/jpeg", "image/png"}) == OutputFormat.PNG
    assert resolve_format(OutputFormat.ORIGINAL, {"image/heic", "image/jpeg"}) == OutputFormat.JPEG
    assert resolve_format(OutputFormat.ORIGINAL, {"image/heic", "text/plain"}) == OutputFormat.HEIC


def test_original_defaults_to_png():
    assert resolve_format(OutputFormat.ORIGINAL, set()) == OutputFormat.PNG
    assert resolve_format(OutputFormat.ORIGINAL, {"image/tiff", "text/plain"}) == OutputFormat.PNG


def test_platform_aliases_are_recognized():
    assert resolve_format(OutputFormat.ORIGINAL, ["public.jpeg"]) == OutputFormat.JPEG
    assert resolve_format(OutputFormat.ORIGINAL, ["IMAGE/HEIF"]) == OutputFormat.HEIC


def test_deterministic():
    types = ["image/jpeg", "image/heic"]
    results = {resolve_format(OutputFormat.ORIGINAL, types) for _ in range(10)}
    assert results == {OutputFormat.JPEG}


def test_mime_types():
    assert mime_type_for(OutputFormat.PNG) == "image/png"
    assert mime_type_for(OutputFormat.JPEG) == "image/jpeg"
    assert mime_type_for(OutputFormat.HEIC) == "image/heic"
    assert mime_type_for(OutputFormat.ORIGINAL) == "image/png"
