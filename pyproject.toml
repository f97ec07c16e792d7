[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "boota"
version = "0.1.0"
description = "BMP images, V4L2 camera capture and a simple preview window"
requires-python = ">=3.10"
keywords = ["bmp", "bitmap", "v4l2", "camera", "webcam", "yuyv", "grayscale"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Video :: Capture",
    "Topic :: Multimedia :: Graphics",
]
dependencies = [
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
boota = "boota.app:main"

[tool.hatch.build.targets.wheel]
packages = ["boota"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
