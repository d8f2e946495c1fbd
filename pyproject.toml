[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rayhunter"
version = "0.1.0"
description = "Qualcomm diag log capture, diag/GSMTAP/pcapng conversion and an analyzer interface for IMSI-catcher heuristics"
requires-python = ">=3.10"
dependencies = []
keywords = ["diag", "gsmtap", "pcapng", "lte", "nas", "imsi-catcher", "hdlc"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Telecommunications Industry",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: System :: Networking :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rayhunter-rootshell = "rayhunter.rootshell:main"

[tool.hatch.build.targets.wheel]
packages = ["rayhunter"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
