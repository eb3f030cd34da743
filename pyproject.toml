[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "imagery"
version = "2.0.0"
description = "Decode, transform, resize, rotate and re-encode images, with EXIF and colour profile handling."
requires-python = ">=3.10"
keywords = ["image", "exif", "resize", "rotate", "colour", "icc", "transformation"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
]
dependencies = [
    "pillow",
    "numpy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
imagery-transform = "imagery.cli_transform:main"
imagery-resize = "imagery.cli_resize:main"

[tool.hatch.build.targets.wheel]
packages = ["imagery"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
