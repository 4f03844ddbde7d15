[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rookery"
version = "0.1.0"
description = "Building blocks for small HTTP servers: query strings, multipart bodies, cookies, CORS, middleware chains, WebSocket framing and task timers."
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "web", "middleware", "cookies", "cors", "multipart", "websocket", "query-string"]
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
    "Topic :: Internet :: WWW/HTTP",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rookery"]

[tool.pytest.ini_options]
addopts = "-ra"
