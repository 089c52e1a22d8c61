[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rtosdemo"
version = "0.1.0"
description = "Small concurrent demos: a value-averaging console, a UDP command interpreter and UDP echo clients"
requires-python = ">=3.10"
dependencies = []
keywords = ["udp", "echo", "cli", "command-interpreter", "demo", "embedded", "threads"]
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
    "Topic :: Software Development :: Embedded Systems",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rtosdemo = "rtosdemo.app:main"

[tool.hatch.build.targets.wheel]
packages = ["rtosdemo"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
