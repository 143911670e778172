[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pixelwrite"
version = "1.0.0"
description = "Compact encoders for PNG, BMP, TGA, Radiance HDR and baseline JPEG images, plus small 3D helpers"
requires-python = ">=3.10"
keywords = ["png", "bmp", "tga", "hdr", "jpeg", "image", "encoder", "deflate", "zlib"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = ["numpy"]

[project.optional-dependencies]
test = ["pytest", "pillow", "numpy"]

[tool.hatch.build.targets.wheel]
packages = ["pixelwrite"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
