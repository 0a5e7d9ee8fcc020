[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minikafka"
version = "0.1.0"
description = "A small in-memory message broker with partitions and consumer groups over TCP"
requires-python = ">=3.10"
dependencies = []
keywords = ["message broker", "queue", "partitions", "consumer groups", "asyncio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
minikafka = "minikafka.server:main"

[tool.hatch.build.targets.wheel]
packages = ["minikafka"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
