[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xfr"
version = "0.9.10"
description = "Building blocks for network bandwidth testing: access control, PSK authentication, configuration, result comparison, LAN discovery and client test helpers"
requires-python = ">=3.11"
keywords = ["network", "bandwidth", "benchmark", "throughput", "mdns", "acl"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Monitoring",
    "Topic :: System :: Benchmark",
]
dependencies = [
    "platformdirs",
    "dnspython",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["xfr"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
