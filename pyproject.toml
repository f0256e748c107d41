[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "runmag"
version = "0.1.3"
description = "Command-line reader for the RM3100 3-axis magnetometer and MCP9808 temperature sensors over Linux I2C"
requires-python = ">=3.10"
dependencies = []
keywords = ["rm3100", "magnetometer", "mcp9808", "i2c", "space-weather", "geomagnetism"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Science/Research",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
runmag = "runmag.main:main"

[tool.hatch.build.targets.wheel]
packages = ["runmag"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
