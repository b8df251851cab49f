#!/usr/bin/env python3
"""
mcbin Setup Script
==================
Allows installation of the mcbin package.

Usage:
    pip install -e .           # Development install
    pip install -e .[test]     # Development install with test tools
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="mcbin",
    version="1.0.0",
    description="Blocking client for the memcached binary protocol",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "mcbin=mcbin.cli:main",
            "mcbin-stub-server=mcbin.server:main",
        ],
    },
)
