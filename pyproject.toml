[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ferrisdrill"
version = "5.5.1"
description = "Command-line runner for small Rust exercises: compile, test, watch and track progress"
requires-python = ">=3.11"
keywords = ["exercises", "learning", "rust", "rustc", "clippy", "rust-analyzer", "education", "cli"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education :: Computer Aided Instruction (CAI)",
]
dependencies = [
    "watchdog",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
ferrisdrill = "ferrisdrill.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["ferrisdrill"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
