[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vetomint"
version = "0.1.0"
description = "A Tendermint-style BFT consensus state machine for a single height, driven by abstract events"
requires-python = ">=3.10"
dependencies = []
keywords = ["consensus", "bft", "tendermint", "blockchain", "state-machine"]
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
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vetomint"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
