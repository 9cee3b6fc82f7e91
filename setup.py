#!/usr/bin/env python3
"""
cachering Setup Script
======================
Allows installation of the cachering package.

Usage:
    pip install -e .           # Development install
    pip install -e .[test]     # Development install with test tools
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="cachering",
    version="1.0.0",
    description="Consistent hashing ring for distributed cache clients",
    packages=find_packages(exclude=["tests", "tests.*", "scripts", "scripts.*"]),
    python_requires=">=3.10",
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cachering-fixture=cachering.fixture:main",
        ],
    },
)
