[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "goostframes"
version = "0.1.0"
description = "Animated GIF decoding, image frame containers, and animated texture and sprite frame import formats."
requires-python = ">=3.10"
dependencies = []
keywords = ["gif", "animation", "frames", "sprite", "texture", "importer"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["goostframes"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
