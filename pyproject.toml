[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tinyserve"
version = "0.1.0"
description = "Stream-style logging with rolling log files, an asynchronous logging backend, timers and a timing wheel."
requires-python = ">=3.10"
dependencies = []
keywords = ["logging", "async-logging", "log-rotation", "timer", "timing-wheel"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Logging",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tinyserve"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
