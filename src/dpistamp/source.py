"""SourceImage: an input image whose pixel size is known before processing."""

from __future__ import annotations

from collections.abc import Callable  # noqa: TC003 - used at runtime in dataclass
from dataclasses import dataclass
from io import BytesIO
import mimetypes
from pathlib import Path
from typing import TYPE_CHECKING

from PIL import Image, UnidentifiedImageError

from dpistamp.constants import SYSTEM_ASSET_MIN_BYTES, UNTYPED_MIME_TYPES
from dpistamp.errors import SourceError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from dpistamp.options import OutputFormat

_JPEG_MIME_TYPES = frozenset({"image/jpeg", "image/jpg", "image/pjpeg"})
_PNG_MIME_TYPES = frozenset({"image/png"})
_JPEG_EXTENSIONS = frozenset({".jpg", ".jpeg"})


def _read_size(fp: str | Path | BytesIO, label: str) -> tuple[int, int]:
    """Read the pixel size from the image header without decoding pixels."""
    try:
        with Image.open(fp) as img:
            return img.size
    except UnidentifiedImageError as e:
        raise SourceError(
            f"Not a recognizable image: {label}",
            hint="dpistamp reads JPEG and PNG sources.",
        ) from e
    except OSError as e:
        raise SourceError(f"Could not read image header: {label}", hint=str(e)) from e


@dataclass(frozen=True, slots=True)
class SourceImage:
    """A single input image.

    Decoding the pixels is left to the rasterizer; only the header is read
    up front so target dimensions can be resolved first.
    """

    name: str
    width: int
    height: int
    mime_type: str
    size_bytes: int
    content_loader: Callable[[], bytes]

    def __post_init__(self) -> None:
        """Reject sizes no image can have."""
        for label, value in (("width", self.width), ("height", self.height)):
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise SourceError(
                    f"Source {label} must be a positive integer, got {value!r}",
                    hint=f"Check the header of {self.name!r}.",
                )

    @classmethod
    def from_file(cls, path: str | Path, *, mime_type: str | None = None) -> SourceImage:
        """Create a SourceImage from a local file.

        Args:
            path: Path to the file. Must exist or ``SourceError`` is raised.
            mime_type: MIME type override. Auto-detected from extension when
                *None*; extensionless files become ``application/octet-stream``.
        """
        p = Path(path)
        if not p.is_file():
            raise SourceError(f"File not found: {p}")

        mt = mime_type or mimetypes.guess_type(str(p))[0] or "application/octet-stream"
        width, height = _read_size(p, str(p))

        def loader() -> bytes:
            return p.read_bytes()

        return cls(
            name=p.name,
            width=width,
            height=height,
            mime_type=mt,
            size_bytes=p.stat().st_size,
            content_loader=loader,
        )

    @classmethod
    def from_bytes(
        cls, data: bytes, *, name: str, mime_type: str | None = None
    ) -> SourceImage:
        """Create a SourceImage from an in-memory encoded image.

        Args:
            data: Encoded image bytes.
            name: File name used for output naming and reporting.
            mime_type: MIME type. Guessed from *name* when *None*.
        """
        mt = mime_type or mimetypes.guess_type(name)[0] or "application/octet-stream"
        width, height = _read_size(BytesIO(data), name)
        return cls(
            name=name,
            width=width,
            height=height,
            mime_type=mt,
            size_bytes=len(data),
            content_loader=lambda: data,
        )

    @property
    def is_system_asset(self) -> bool:
        """Whether this looks like an extensionless, untyped platform asset."""
        return (
            "." not in self.name
            and self.size_bytes > SYSTEM_ASSET_MIN_BYTES
            and self.mime_type in UNTYPED_MIME_TYPES
        )


def _source_format(source: SourceImage) -> OutputFormat:
    suffix = Path(source.name).suffix.lower()
    if source.mime_type in _PNG_MIME_TYPES or suffix == ".png":
        return "png"
    return "jpeg"


def is_supported_source(source: SourceImage) -> bool:
    """Return True for JPEG/PNG sources and untyped files that may be assets."""
    if source.mime_type in _JPEG_MIME_TYPES | _PNG_MIME_TYPES:
        return True
    if source.mime_type in UNTYPED_MIME_TYPES:
        return True
    suffix = Path(source.name).suffix.lower()
    return suffix in _JPEG_EXTENSIONS or suffix == ".png"


def detect_output_format(sources: Iterable[SourceImage]) -> OutputFormat:
    """Pick an output format by majority vote over the input formats.

    PNG wins only when PNG sources strictly outnumber the rest; unknown types
    count as JPEG, so ties and empty inputs yield ``"jpeg"``.
    """
    png = jpeg = 0
    for source in sources:
        if _source_format(source) == "png":
            png += 1
        else:
            jpeg += 1
    return "png" if png > jpeg else "jpeg"
