# region Docstring
"""
clipservices.imaging
Pillow helpers for image entries: PNG encoding, content signatures, backing files
and preview thumbnails.
Design notes:
- The content signature is the SHA256 of the PNG encoding, so the same pixels read
    twice from the clipboard always produce the same signature.
- Thumbnail generation maintains aspect ratio and keeps transparency for images with
    an alpha channel (RGBA, LA, or P mode with transparency); other images are
    converted to RGB.
"""
# endregion
# region Imports
import base64
from io import BytesIO
from pathlib import Path

from PIL import Image

from clipcore.utils import get_bytes_sha256


# endregion
# region Helpers
def encode_png(image: Image.Image) -> bytes:
    """Encode ``image`` as PNG bytes."""
    buffered = BytesIO()
    image.save(buffered, format="PNG")
    return buffered.getvalue()


def image_signature(png_bytes: bytes) -> str:
    """Dedup signature of an encoded image."""
    return get_bytes_sha256(png_bytes)


def write_backing_file(png_bytes: bytes, directory: Path, entry_id: int) -> Path:
    """
    Write the backing file of an image entry.

    Returns:
        Path: ``<directory>/<entry_id>.png``
    """
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{entry_id}.png"
    path.write_bytes(png_bytes)
    return path


def make_thumbnail(image: Image.Image, thumbnail_size: tuple[int, int]) -> str:
    """
    Build a preview bounded by ``thumbnail_size``.

    Returns:
        str: A ``data:image/png;base64,...`` URI.
    """
    img_copy = image.copy()
    img_copy.thumbnail(thumbnail_size)

    if img_copy.mode in ("RGBA", "LA") or (
        img_copy.mode == "P" and "transparency" in img_copy.info
    ):
        img_copy = img_copy.convert("RGBA")
        background = Image.new("RGBA", img_copy.size, (255, 255, 255, 0))
        background.paste(img_copy, mask=img_copy.split()[3])  # 3 is the alpha channel
        img_copy = background
    else:
        img_copy = img_copy.convert("RGB")

    thumb_buffered = BytesIO()
    img_copy.save(thumb_buffered, format="PNG")
    encoded = base64.b64encode(thumb_buffered.getvalue()).decode("utf-8")
    return f"data:image/png;base64,{encoded}"


# endregion
__all__ = ["encode_png", "image_signature", "make_thumbnail", "write_backing_file"]
