[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "iowatcher"
version = "0.1.0"
description = "Block I/O trace tooling: SVG drawing primitives, fio and mpstat log readers, tracer control, a red-black tree and a blkparse order checker"
requires-python = ">=3.10"
dependencies = []
keywords = ["blktrace", "blkparse", "io", "mpstat", "fio", "svg", "monitoring", "storage"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
    "Topic :: Multimedia :: Graphics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
verify-blkparse = "iowatcher.verify:main"

[tool.hatch.build.targets.wheel]
packages = ["iowatcher"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
