[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fastpasta"
version = "0.1.0"
description = "Scanning of raw binary readout data: CDP input scanning, link filtering, statistics collection and summary reports."
requires-python = ">=3.10"
dependencies = [
    "tabulate",
    "termcolor>=2.1",
]
keywords = [
    "rdh",
    "raw data",
    "readout",
    "detector",
    "binary format",
    "statistics",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["fastpasta"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
