[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spotcore"
version = "0.1.0"
description = "Protocol building blocks for a Spotify Connect client: Shannon cipher, protobuf wire format, login blobs, audio chunks and the access point link"
requires-python = ">=3.10"
keywords = ["spotify", "connect", "shannon", "protobuf", "audio", "streaming"]
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
    "Topic :: Multimedia :: Sound/Audio :: Players",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["spotcore"]

[tool.pytest.ini_options]
addopts = "-ra"
