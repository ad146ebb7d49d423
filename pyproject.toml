[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "femtofat"
version = "0.1.0"
description = "FAT16/FAT32 formatting and allocation-table helpers, a minimal ELF32 section loader and UART key decoding"
requires-python = ">=3.10"
dependencies = []
keywords = ["fat", "fat16", "fat32", "filesystem", "elf", "risc-v", "embedded"]
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
    "Topic :: System :: Filesystems",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["femtofat"]

[tool.pytest.ini_options]
addopts = "-ra"
