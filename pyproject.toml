[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "soam"
version = "0.1.0"
description = "Quantum circuit building blocks: OpenQASM parsing, layered and DAG circuits, run settings and optimizer oracles"
requires-python = ">=3.11"
keywords = ["quantum", "circuit", "optimization", "qasm", "openqasm"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
]
dependencies = [
    "msgpack",
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["soam"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
