"""Reading, writing and editing uncompressed 24-bit and 32-bit BMP images."""

from __future__ import annotations

import os
import struct
from dataclasses import astuple, dataclass, field
from typing import BinaryIO, Union

PathLike = Union[str, "os.PathLike[str]"]

_BMP_SIGNATURE = 0x4D42
_SRGB = 0x73524742

_FILE_HEADER_FORMAT = "<HIHHI"
_INFO_HEADER_FORMAT = "<IiiHHIIiiII"
_COLOR_HEADER_FORMAT = "<5I16I"

_FILE_HEADER_SIZE = struct.calcsize(_FILE_HEADER_FORMAT)
_INFO_HEADER_SIZE = struct.calcsize(_INFO_HEADER_FORMAT)
_COLOR_HEADER_SIZE = struct.calcsize(_COLOR_HEADER_FORMAT)


class BMPError(RuntimeError):
    """Raised when a BMP image cannot be read, written or edited."""


@dataclass(frozen=True)
class Pixel:
    """An RGB colour with 8-bit channels."""

    red: int = 0
    green: int = 0
    blue: int = 0

    def __post_init__(self) -> None:
        for name in ("red", "green", "blue"):
            value = getattr(self, name)
            if not 0 <= value <= 255:
                raise ValueError(f"{name} channel must be in 0..255, got {value}")


@dataclass
class FileHeader:
    """The 14-byte BMP file header."""

    signature: int = _BMP_SIGNATURE
    filesize: int = 0
    reserved1: int = 0
    reserved2: int = 0
    offsetdata: int = 0


@dataclass
class InfoHeader:
    """The 40-byte BITMAPINFOHEADER."""

    size: int = 0
    width: int = 0
    height: int = 0
    planes: int = 1
    bitcount: int = 0
    compression: int = 0
    imagesize: int = 0
    xpixels_per_m: int = 0
    ypixels_per_m: int = 0
    colorsused: int = 0
    colorsimportant: int = 0


@dataclass
class ColorHeader:
    """Channel masks and colour space that follow the info header in 32-bit images."""

    redmask: int = 0x00FF0000
    greenmask: int = 0x0000FF00
    bluemask: int = 0x000000FF
    alphamask: int = 0xFF000000
    colorspacetype: int = _SRGB
    unused: list[int] = field(default_factory=lambda: [0] * 16)


def _pack_file_header(header: FileHeader) -> bytes:
    return struct.pack(_FILE_HEADER_FORMAT, *astuple(header))


def _pack_info_header(header: InfoHeader) -> bytes:
    return struct.pack(_INFO_HEADER_FORMAT, *astuple(header))


def _pack_color_header(header: ColorHeader) -> bytes:
    *masks, unused = astuple(header)
    return struct.pack(_COLOR_HEADER_FORMAT, *masks, *unused)


def _read_exact(stream: BinaryIO, size: int, what: str) -> bytes:
    raw = stream.read(size)
    if len(raw) < size:
        raise BMPError(f"File is truncated in the {what}.")
    return raw


def _check_color_header(header: ColorHeader) -> None:
    expected = ColorHeader()
    if (
        header.redmask != expected.redmask
        or header.greenmask != expected.greenmask
        or header.bluemask != expected.bluemask
        or header.alphamask != expected.alphamask
    ):
        raise BMPError("Pixel data must be in BGRA format.")
    if header.colorspacetype != expected.colorspacetype:
        raise BMPError("Color space must be sRGB.")


def _aligned(stride: int, alignment: int = 4) -> int:
    return -(-stride // alignment) * alignment


class BMP:
    """A bottom-up, uncompressed BMP image held in memory as BGR(A) bytes."""

    def __init__(self, width: int, height: int, has_alpha: bool = True) -> None:
        if width <= 0 or height <= 0:
            raise BMPError("Image width and height must be positive!")

        self.file_header = FileHeader()
        self.info_header = InfoHeader(width=width, height=height)
        self.color_header = ColorHeader()

        if has_alpha:
            self.info_header.size = _INFO_HEADER_SIZE + _COLOR_HEADER_SIZE
            self.info_header.bitcount = 32
            self.info_header.compression = 3
            self._row_stride = width * 4
        else:
            self.info_header.size = _INFO_HEADER_SIZE
            self.info_header.bitcount = 24
            self.info_header.compression = 0
            self._row_stride = width * 3
        self.file_header.offsetdata = _FILE_HEADER_SIZE + self.info_header.size

        self.data = bytearray(self._row_stride * height)
        self.file_header.filesize = self.file_header.offsetdata + len(self.data)
        if not has_alpha:
            padding = _aligned(self._row_stride) - self._row_stride
            self.file_header.filesize += height * padding

    @classmethod
    def from_file(cls, path: PathLike) -> "BMP":
        """Load an image from a BMP file."""
        image = cls.__new__(cls)
        image.read(path)
        return image

    @property
    def _channels(self) -> int:
        return self.info_header.bitcount // 8

    def read(self, path: PathLike) -> None:
        """Replace this image with the contents of the BMP file at ``path``."""
        try:
            stream = open(path, "rb")
        except OSError as exc:
            raise BMPError("Failed to open file.") from exc

        with stream:
            raw = stream.read(_FILE_HEADER_SIZE)
            if len(raw) < _FILE_HEADER_SIZE:
                raise BMPError("File is not recognized as a BMP format.")
            file_header = FileHeader(*struct.unpack(_FILE_HEADER_FORMAT, raw))
            if file_header.signature != _BMP_SIGNATURE:
                raise BMPError("File is not recognized as a BMP format.")

            info_header = InfoHeader(
                *struct.unpack(
                    _INFO_HEADER_FORMAT,
                    _read_exact(stream, _INFO_HEADER_SIZE, "info header"),
                )
            )

            color_header = ColorHeader()
            if info_header.bitcount == 32:
                if info_header.size < _INFO_HEADER_SIZE + _COLOR_HEADER_SIZE:
                    raise BMPError("File lacks bitmask information.")
                values = struct.unpack(
                    _COLOR_HEADER_FORMAT,
                    _read_exact(stream, _COLOR_HEADER_SIZE, "color header"),
                )
                color_header = ColorHeader(*values[:5], unused=list(values[5:]))
                _check_color_header(color_header)

            stream.seek(file_header.offsetdata)

            if info_header.height < 0:
                raise BMPError("Only bottom-up BMP images are supported.")

            row_stride = info_header.width * info_header.bitcount // 8
            data = bytearray(row_stride * info_header.height)

            if info_header.bitcount == 24 and info_header.width % 4 != 0:
                padding = _aligned(row_stride) - row_stride
                view = memoryview(data)
                for start in range(0, len(data), row_stride):
                    row = stream.read(row_stride)
                    view[start : start + len(row)] = row
                    stream.read(padding)
            else:
                payload = stream.read(len(data))
                data[: len(payload)] = payload

        self.file_header = file_header
        self.info_header = info_header
        self.color_header = color_header
        self.data = data
        self._row_stride = row_stride

    def write(self, path: PathLike) -> None:
        """Write the image to ``path`` as a BMP file."""
        bitcount = self.info_header.bitcount
        if bitcount not in (24, 32):
            raise BMPError("Only 24-bit and 32-bit BMP formats are supported.")

        try:
            stream = open(path, "wb")
        except OSError as exc:
            raise BMPError("Failed to create file.") from exc

        with stream:
            stream.write(_pack_file_header(self.file_header))
            stream.write(_pack_info_header(self.info_header))
            if bitcount == 32:
                stream.write(_pack_color_header(self.color_header))

            if bitcount == 32 or self.info_header.width % 4 == 0:
                stream.write(self.data)
            else:
                stride = self._row_stride
                padding = bytes(_aligned(stride) - stride)
                view = memoryview(self.data)
                for start in range(0, stride * self.info_header.height, stride):
                    stream.write(view[start : start + stride])
                    stream.write(padding)

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self.info_header.width and 0 <= y < self.info_header.height):
            raise BMPError("Pixel coordinates are out of bounds.")
        return self._channels * (y * self.info_header.width + x)

    def set_pixel(self, x: int, y: int, pixel: Pixel) -> None:
        """Set the pixel at column ``x`` and row ``y`` (row 0 is the bottom)."""
        idx = self._index(x, y)
        self.data[idx : idx + 3] = bytes((pixel.blue, pixel.green, pixel.red))
        if self._channels == 4:
            self.data[idx + 3] = 255

    def get_pixel(self, x: int, y: int) -> Pixel:
        """Return the pixel at column ``x`` and row ``y`` (row 0 is the bottom)."""
        idx = self._index(x, y)
        blue, green, red = self.data[idx : idx + 3]
        return Pixel(red, green, blue)

    def to_grayscale(self) -> None:
        """Convert every pixel to its luma value, leaving any alpha untouched."""
        channels = self._channels
        if channels not in (3, 4):
            raise BMPError(
                "Grayscale conversion only supports 24-bit or 32-bit BMP images."
            )
        count = self.info_header.width * self.info_header.height
        for idx in range(0, count * channels, channels):
            blue, green, red = self.data[idx : idx + 3]
            gray = int(0.299 * red + 0.587 * green + 0.114 * blue)
            self.data[idx : idx + 3] = bytes((gray, gray, gray))