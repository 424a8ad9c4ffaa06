[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rpcproxy"
version = "0.1.0"
description = "Request models, validation, signature checks and metrics for a blockchain RPC proxy service"
requires-python = ">=3.10"
keywords = ["json-rpc", "ethereum", "proxy", "signature", "onramp", "metrics"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "pycryptodome",
    "psutil",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["rpcproxy"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
