[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "exfilsim"
version = "0.1.0"
description = "Rules engine for a node-graph, turn-based tactical game: message log, health, turns, weapons, inventory, nodes, support strikes and rifle enemies."
requires-python = ">=3.10"
dependencies = []
keywords = ["game", "turn-based", "tactics", "simulation", "roguelike"]
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
    "Topic :: Games/Entertainment :: Turn Based Strategy",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["exfilsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
