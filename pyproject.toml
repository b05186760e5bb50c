[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cdrbilling"
version = "0.1.0"
description = "Menu-driven TCP servers and terminal clients for user sign-up, login and CDR-based customer billing reports"
requires-python = ">=3.10"
dependencies = []
keywords = ["cdr", "billing", "telecom", "call detail records", "tcp", "server", "login"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Telephony",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
cdrbilling-server = "cdrbilling.server:main"
cdrbilling-threaded-server = "cdrbilling.threaded_server:main"
cdrbilling-client = "cdrbilling.client:main"

[tool.hatch.build.targets.wheel]
packages = ["cdrbilling"]

[tool.pytest.ini_options]
addopts = "-ra"
