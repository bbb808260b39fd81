[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pyplistkit"
version = "0.1.0"
description = "Property list node model with an XML plist reader and writer"
requires-python = ">=3.10"
dependencies = []
keywords = ["plist", "property list", "xml"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: File Formats",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pyplistkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
