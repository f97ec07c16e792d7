# boota

Capture frames from a Video4Linux2 camera, handle them as BMP images and
show them in a small preview window.

The package has four modules:

- `boota.bmp`: `BMP` reads and writes uncompressed 24-bit and 32-bit BMP
  files (bottom-up only). It gives per-pixel access through `get_pixel` and
  `set_pixel` (row 0 is the bottom row) and converts an image to grayscale
  in place with `to_grayscale`. Colours are `Pixel(red, green, blue)` values
  with channels in 0..255. The headers are kept as `FileHeader`,
  `InfoHeader` and `ColorHeader` in the attributes `file_header`,
  `info_header` and `color_header`, and the raw BGR(A) bytes in `data`.
- `boota.camera`: `V4L2Camera` opens a device such as `/dev/video0`, asks
  for YUYV frames at the requested size (the device may pick another size;
  the chosen one ends up in `width` and `height`), streams through four
  memory-mapped buffers and turns each frame into a 24-bit `BMP` with
  `capture_bmp`. The frame is rotated by half a turn on the way. The helpers
  `yuv_to_rgb_pixel`, `yuyv_to_rgb24` and `rgb24_to_bmp` can be used on
  their own.
- `boota.window`: `BMPWindow` opens a pygame window, draws a `BMP` with
  `show_bmp` with its bottom row at the bottom edge, and closes when Escape
  is pressed or the window is closed.
- `boota.app`: the `boota` command, and `run(window, camera, output_path,
  frame_delay)`, the loop behind it.

## Installing

```
pip install .
```

The camera needs a Linux system with a V4L2 device that delivers YUYV
frames. The window needs pygame and a display.

## Running

```
boota
```

This opens a 640×480 window titled "Boota Camera Window" and the camera on
`/dev/video0`. Each frame is saved in colour to `image.bmp` in the current
directory, then shown in grayscale, about every 8 ms. Press Escape to quit.

Options:

- `--device PATH`: the capture device (default `/dev/video0`)
- `--width N`, `--height N`: window and frame size (default 640 and 480)
- `--output PATH`: the file that receives each frame (default `image.bmp`)

If the camera or a file cannot be used, the command prints the error and
exits with status 1.

## Using the library

```python
from boota.bmp import BMP, Pixel

image = BMP(4, 3, False)          # 24-bit, no alpha channel
image.set_pixel(0, 0, Pixel(255, 0, 0))
image.to_grayscale()
image.write("small.bmp")

again = BMP.from_file("small.bmp")
print(again.get_pixel(0, 0))      # Pixel(red=76, green=76, blue=76)
```

Capturing a single frame:

```python
from boota.camera import V4L2Camera

with V4L2Camera("/dev/video0", 640, 480) as camera:
    frame = camera.capture_bmp()
    frame.write("frame.bmp")
```

`capture_bmp` waits up to two seconds for a frame.

Errors in files and pixel access raise `BMPError`; device problems raise
`CameraError`.

## Limits

Only uncompressed bottom-up BMP files with 24 or 32 bits per pixel are read;
32-bit files must use BGRA masks and the sRGB colour space. The camera only
takes YUYV frames through memory-mapped buffers, and the viewer does not
record video: it overwrites one image file with each new frame.

## Tests

```
pip install .[test]
pytest
```