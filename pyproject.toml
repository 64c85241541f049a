[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tcproposal"
version = "0.1.0"
description = "Price information requests and technical-commercial proposals: creation, validation, partner checks, approval, pricing and incoming platform messages, over an in-memory transactional store."
requires-python = ">=3.10"
dependencies = []
keywords = ["procurement", "price information request", "commercial proposal", "tender"]
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
    "Topic :: Office/Business",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["tcproposal"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"
