[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "leapsql"
version = "0.1.0"
description = "SQL model dependency graphs, lineage traversal, project configuration and project scaffolding"
requires-python = ">=3.10"
keywords = ["sql", "dag", "lineage", "data-transformation", "sqlite", "scaffolding"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
]
dependencies = [
    "pyyaml",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
leapsql = "leapsql.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["leapsql"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
