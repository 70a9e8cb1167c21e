[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "contractkit"
version = "0.1.0"
description = "Smart contract metadata, ink! compatibility checks and raw JSON-RPC calls for contracts-enabled chains"
requires-python = ">=3.10"
keywords = ["smart-contracts", "metadata", "wasm", "json-rpc", "ink", "ss58"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Framework :: AsyncIO",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "semver>=3.0",
    "websockets>=11.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "pytest-asyncio>=0.21",
]

[tool.hatch.build.targets.wheel]
packages = ["contractkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
