[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kafkawire"
version = "0.1.0"
description = "Wire codecs, cluster metadata state, connection pooling and request framing for Kafka clients"
requires-python = ">=3.10"
dependencies = []
keywords = ["kafka", "protocol", "wire", "metadata", "connection-pool"]
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
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kafkawire"]

[tool.pytest.ini_options]
addopts = "-ra"
