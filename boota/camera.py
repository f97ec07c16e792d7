"""Frame capture from Video4Linux2 devices streaming YUYV over memory-mapped buffers."""

from __future__ import annotations

import fcntl
import mmap
import os
import select
import struct
from typing import Union

from boota.bmp import BMP

PathLike = Union[str, "os.PathLike[str]"]

_IOC_WRITE = 1
_IOC_READ = 2


def _ioc(direction: int, number: int, size: int) -> int:
    return (direction << 30) | (size << 16) | (ord("V") << 8) | number


def _fourcc(code: str) -> int:
    a, b, c, d = code.encode("ascii")
    return a | (b << 8) | (c << 16) | (d << 24)


_CAPABILITY_FORMAT = "@16s32s32sIII3I"
_PIX_FORMAT = "@4I"
_FORMAT_UNION_OFFSET = struct.calcsize("@I0P")
_FORMAT_SIZE = _FORMAT_UNION_OFFSET + 200
_REQBUFS_FORMAT = "@5I"
# index, type, bytesused, flags, field, timestamp (2), timecode (10),
# sequence, memory, m, length, reserved2, request_fd
_BUFFER_FORMAT = "@5I2l2I8B2IL2Ii0l"
_INT_FORMAT = "@i"

_VIDIOC_QUERYCAP = _ioc(_IOC_READ, 0, struct.calcsize(_CAPABILITY_FORMAT))
_VIDIOC_S_FMT = _ioc(_IOC_READ | _IOC_WRITE, 5, _FORMAT_SIZE)
_VIDIOC_REQBUFS = _ioc(_IOC_READ | _IOC_WRITE, 8, struct.calcsize(_REQBUFS_FORMAT))
_VIDIOC_QUERYBUF = _ioc(_IOC_READ | _IOC_WRITE, 9, struct.calcsize(_BUFFER_FORMAT))
_VIDIOC_QBUF = _ioc(_IOC_READ | _IOC_WRITE, 15, struct.calcsize(_BUFFER_FORMAT))
_VIDIOC_DQBUF = _ioc(_IOC_READ | _IOC_WRITE, 17, struct.calcsize(_BUFFER_FORMAT))
_VIDIOC_STREAMON = _ioc(_IOC_WRITE, 18, struct.calcsize(_INT_FORMAT))
_VIDIOC_STREAMOFF = _ioc(_IOC_WRITE, 19, struct.calcsize(_INT_FORMAT))

_CAP_VIDEO_CAPTURE = 0x00000001
_CAP_STREAMING = 0x04000000
_BUF_TYPE_VIDEO_CAPTURE = 1
_MEMORY_MMAP = 1
_FIELD_NONE = 1
_PIX_FMT_YUYV = _fourcc("YUYV")

_BUFFER_COUNT = 4
_FRAME_TIMEOUT = 2.0


class CameraError(RuntimeError):
    """Raised when the capture device cannot be opened, configured or read."""


def _clamp(value: int) -> int:
    return max(0, min(255, value))


def yuv_to_rgb_pixel(y: int, u: int, v: int) -> tuple[int, int, int]:
    """Convert one BT.601 YUV sample to an ``(red, green, blue)`` triple."""
    c = y - 16
    d = u - 128
    e = v - 128
    red = (298 * c + 409 * e + 128) >> 8
    green = (298 * c - 100 * d - 208 * e + 128) >> 8
    blue = (298 * c + 516 * d + 128) >> 8
    return _clamp(red), _clamp(green), _clamp(blue)


def yuyv_to_rgb24(yuyv: bytes, width: int, height: int) -> bytes:
    """Convert a packed YUYV 4:2:2 frame into packed RGB24 bytes."""
    size = width * height * 2
    if len(yuyv) < size:
        raise ValueError(f"YUYV frame needs {size} bytes, got {len(yuyv)}")
    frame = yuyv[:size]
    rgb = bytearray()
    for y0, u, y1, v in zip(frame[0::4], frame[1::4], frame[2::4], frame[3::4]):
        rgb.extend(yuv_to_rgb_pixel(y0, u, v))
        rgb.extend(yuv_to_rgb_pixel(y1, u, v))
    return bytes(rgb)


def rgb24_to_bmp(rgb: bytes, width: int, height: int) -> BMP:
    """Build a 24-bit BMP from top-down RGB24 bytes, rotated by half a turn.

    Camera pixel ``(x, y)`` lands at ``(width - x - 1, height - y - 1)``.
    """
    size = width * height * 3
    if len(rgb) != size:
        raise ValueError(f"RGB24 frame needs {size} bytes, got {len(rgb)}")
    bmp = BMP(width, height, False)
    # Reversing the byte stream reverses pixel order and turns RGB into BGR.
    bmp.data[:] = rgb[::-1]
    return bmp


class V4L2Camera:
    """A streaming YUYV capture device that hands out frames as BMP images."""

    def __init__(
        self,
        device: PathLike = "/dev/video0",
        width: int = 640,
        height: int = 480,
    ) -> None:
        self.width = width
        self.height = height
        self._buffers: list[mmap.mmap] = []
        try:
            self._fd: int | None = os.open(device, os.O_RDWR)
        except OSError as exc:
            raise CameraError("Cannot open device") from exc
        try:
            self._init_device()
            self._ioctl(
                _VIDIOC_STREAMON,
                bytearray(struct.pack(_INT_FORMAT, _BUF_TYPE_VIDEO_CAPTURE)),
                "Failed to start capture",
            )
        except BaseException:
            self.close()
            raise

    def __enter__(self) -> "V4L2Camera":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def _ioctl(self, request: int, arg: bytearray, message: str) -> None:
        try:
            fcntl.ioctl(self._fd, request, arg, True)
        except OSError as exc:
            raise CameraError(message) from exc

    @staticmethod
    def _buffer_request(index: int) -> bytearray:
        fields = [0] * 23
        fields[0] = index
        fields[1] = _BUF_TYPE_VIDEO_CAPTURE
        fields[18] = _MEMORY_MMAP
        return bytearray(struct.pack(_BUFFER_FORMAT, *fields))

    def _init_device(self) -> None:
        cap = bytearray(struct.calcsize(_CAPABILITY_FORMAT))
        self._ioctl(_VIDIOC_QUERYCAP, cap, "Failed to query device capabilities")
        capabilities = struct.unpack(_CAPABILITY_FORMAT, cap)[4]
        if not capabilities & _CAP_VIDEO_CAPTURE:
            raise CameraError("Device does not support capture")
        if not capabilities & _CAP_STREAMING:
            raise CameraError("Device does not support streaming")

        fmt = bytearray(_FORMAT_SIZE)
        struct.pack_into("@I", fmt, 0, _BUF_TYPE_VIDEO_CAPTURE)
        struct.pack_into(
            _PIX_FORMAT,
            fmt,
            _FORMAT_UNION_OFFSET,
            self.width,
            self.height,
            _PIX_FMT_YUYV,
            _FIELD_NONE,
        )
        self._ioctl(_VIDIOC_S_FMT, fmt, "Failed to set format")
        width, height, pixelformat, _ = struct.unpack_from(
            _PIX_FORMAT, fmt, _FORMAT_UNION_OFFSET
        )
        if pixelformat != _PIX_FMT_YUYV:
            raise CameraError("Device did not accept YUYV format")
        self.width, self.height = width, height

        req = bytearray(
            struct.pack(
                _REQBUFS_FORMAT, _BUFFER_COUNT, _BUF_TYPE_VIDEO_CAPTURE, _MEMORY_MMAP, 0, 0
            )
        )
        self._ioctl(_VIDIOC_REQBUFS, req, "Failed to request buffers")
        count = struct.unpack(_REQBUFS_FORMAT, req)[0]

        for index in range(count):
            buf = self._buffer_request(index)
            self._ioctl(_VIDIOC_QUERYBUF, buf, "Failed to query buffer")
            fields = struct.unpack(_BUFFER_FORMAT, buf)
            offset = fields[19] & 0xFFFFFFFF
            length = fields[20]
            try:
                mapping = mmap.mmap(
                    self._fd,
                    length,
                    mmap.MAP_SHARED,
                    mmap.PROT_READ | mmap.PROT_WRITE,
                    offset=offset,
                )
            except (OSError, ValueError) as exc:
                raise CameraError("Failed to mmap buffer") from exc
            self._buffers.append(mapping)

        for index in range(count):
            self._ioctl(
                _VIDIOC_QBUF, self._buffer_request(index), "Failed to queue buffer"
            )

    def capture_bmp(self) -> BMP:
        """Wait for the next frame and return it as a 24-bit BMP."""
        if self._fd is None:
            raise CameraError("Device is closed")
        try:
            ready, _, _ = select.select([self._fd], [], [], _FRAME_TIMEOUT)
        except OSError as exc:
            raise CameraError("Timeout or error waiting for frame") from exc
        if not ready:
            raise CameraError("Timeout or error waiting for frame")

        buf = self._buffer_request(0)
        self._ioctl(_VIDIOC_DQBUF, buf, "Failed to dequeue buffer")
        index = struct.unpack_from("@I", buf, 0)[0]
        frame = self._buffers[index][: self.width * self.height * 2]
        rgb = yuyv_to_rgb24(frame, self.width, self.height)
        self._ioctl(_VIDIOC_QBUF, buf, "Failed to requeue buffer")

        return rgb24_to_bmp(rgb, self.width, self.height)

    def close(self) -> None:
        """Stop streaming, release the buffers and close the device."""
        if self._fd is None:
            return
        try:
            fcntl.ioctl(
                self._fd,
                _VIDIOC_STREAMOFF,
                bytearray(struct.pack(_INT_FORMAT, _BUF_TYPE_VIDEO_CAPTURE)),
                True,
            )
        except OSError:
            pass
        for mapping in self._buffers:
            mapping.close()
        self._buffers.clear()
        os.close(self._fd)
        self._fd = None