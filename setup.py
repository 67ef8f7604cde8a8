#!/usr/bin/env python3

import os
import re

from setuptools import setup


def read(fname):
    with open(os.path.join(os.path.dirname(__file__), fname)) as f:
        return f.read()


def version():
    match = re.search(r"^__version__ = ['\"]([^'\"]*)['\"]", read("crowdfiber/__init__.py"), re.M)
    if not match:
        raise RuntimeError("failed to parse version")
    return match.group(1)


install_requires = [
    "httpx >= 0.24",
    "iso8601 >= 1.0",
    "multidict >= 6.0",
    "wrapt >= 1.14",
]

extras_require = {
    "test": [
        "pytest >= 7.0",
        "pytest-asyncio >= 0.21",
    ]
}

classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Framework :: AsyncIO",
    "Topic :: Internet :: WWW/HTTP",
]

setup(
    name="crowdfiber",
    version=version(),
    description="Asynchronous client for the CrowdFiber REST API.",
    long_description=read("README.rst"),
    classifiers=classifiers,
    packages=["crowdfiber"],
    python_requires=">= 3.11",
    install_requires=install_requires,
    extras_require=extras_require,
    keywords="crowdfiber api client pagination asyncio",
)
