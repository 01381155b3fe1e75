#!/usr/bin/env python3
"""
kvfile Setup Script
===================
Allows installation of the kvfile package.

Usage:
    pip install -e .           # Development install
    pip install -e .[test]     # With the test tooling
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="kvfile",
    version="1.0.0",
    packages=find_packages(include=["kvfile", "kvfile.*"]),
    python_requires=">=3.10",
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    entry_points={
        "console_scripts": [
            "kvfile=kvfile.cli:main",
        ],
    },
)
