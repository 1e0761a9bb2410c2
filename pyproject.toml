[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "signindesk"
version = "0.1.0"
description = "Command-line tool to book office desks and review attendance through the Sign In App API"
requires-python = ">=3.10"
keywords = ["desk booking", "office", "attendance", "hot desking", "cli"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Scheduling",
]
dependencies = [
    "requests",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
signin = "signindesk.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["signindesk"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
