[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nparrot"
version = "0.1.0"
description = "Notes and events stores, tool-parameter sanitising, progress reminders and a goose command runner for agent chat servers"
requires-python = ">=3.10"
dependencies = []
keywords = ["agent", "notes", "events", "goose", "json", "tooling"]
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
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["nparrot"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
