[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "belfast"
version = "0.1.0"
description = "Game-server data models, packet framing and routing, admin form validation and display helpers"
requires-python = ">=3.10"
dependencies = [
    "sqlalchemy>=2.0",
]
keywords = ["game-server", "sqlalchemy", "packets", "protocol", "forms"]
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
    "Topic :: Games/Entertainment",
    "Topic :: Database",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
]

[tool.hatch.build.targets.wheel]
packages = ["belfast"]

[tool.hatch.build.targets.sdist]
include = ["belfast", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
