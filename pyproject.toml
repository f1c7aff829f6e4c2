[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "arcstream"
version = "0.1.0"
description = "In-process message streaming primitives: stateful streamers, stream controllers, sequencers, message framing and structured event logging."
requires-python = ">=3.11"
dependencies = []
keywords = ["streaming", "sequencer", "actors", "framing", "logging", "graphviz"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["arcstream"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
