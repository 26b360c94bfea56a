#!/usr/bin/env python3
"""
tagcache Setup Script
=====================
Allows installation of the tagcache package.

Usage:
    pip install -e .           # Development install
    pip install -e .[test]     # With test dependencies
    pip install .              # Regular install
"""

from setuptools import setup, find_packages

setup(
    name="tagcache",
    version="1.0.0",
    packages=find_packages(include=["tagcache", "tagcache.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pymemcache>=4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tagcache=tagcache.shell:main",
        ],
    },
)
