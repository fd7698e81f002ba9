[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "quamina"
version = "0.1.0"
description = "Building blocks for matching JSON events against JSON patterns: event flattening, pattern parsing and match bookkeeping"
requires-python = ">=3.10"
dependencies = []
keywords = ["json", "pattern-matching", "events", "flattening", "parser"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["quamina"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
