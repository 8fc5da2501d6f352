[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "friiorec"
version = "0.1.0"
description = "Data-side helpers for ISDB tuner recording: stream descrambling, TS service splitting, channel parsing, buffering and UDP output"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "isdb",
    "mpeg-ts",
    "transport-stream",
    "tuner",
    "recording",
    "pat",
    "pmt",
]
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
    "Topic :: Multimedia :: Video :: Capture",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["friiorec"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
