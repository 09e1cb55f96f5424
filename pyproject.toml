[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mpkpak"
version = "0.1.0"
description = "Extract notes from and build Nintendo 64 Controller Pak (.mpk) save images"
requires-python = ">=3.10"
dependencies = []
keywords = ["n64", "controller pak", "mpk", "save", "emulator"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
mpkpak = "mpkpak.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["mpkpak"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
