[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cslabkit"
version = "0.1.0"
description = "Benchmark driver for image rotate and smooth kernels, plus a tiny job-control shell and its test helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["benchmark", "cpe", "rotate", "smooth", "shell", "job-control"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Benchmark",
    "Topic :: System :: Shells",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
perflab-driver = "cslabkit.driver:main"
tsh = "cslabkit.shell:main"
myspin = "cslabkit.helpers:myspin_main"
myint = "cslabkit.helpers:myint_main"
mysplit = "cslabkit.helpers:mysplit_main"
mystop = "cslabkit.helpers:mystop_main"

[tool.hatch.build.targets.wheel]
packages = ["cslabkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
