[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "webstack"
version = "0.1.0"
description = "A small asynchronous web service with users in MySQL, Redis-backed sessions and caching, login, cookies, static files and a WebSocket endpoint."
requires-python = ">=3.10"
keywords = ["web", "server", "aiohttp", "sessions", "redis", "mysql", "websocket"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Framework :: AsyncIO",
    "Framework :: aiohttp",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "aiohttp>=3.9",
    "pymysql>=1.1",
    "redis>=5.0.1",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "pytest-asyncio>=0.23",
]

[project.scripts]
webstack = "webstack.app:main"

[tool.hatch.build.targets.wheel]
packages = ["webstack"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
