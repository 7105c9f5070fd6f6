#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Setup script for apiscout

Packages the apiscout schema interpretation engine: schema compilation,
payload validation, example generation and report formatting.
"""

from pathlib import Path

from setuptools import setup, find_packages

VERSION = "0.1.0"

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
if readme_file.exists():
    long_description = readme_file.read_text(encoding="utf-8")
else:
    long_description = (
        "apiscout - schema interpretation engine for API request payloads"
    )

setup(
    name="apiscout",
    version=VERSION,
    description="Schema compilation, payload validation and example generation",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["apiscout", "apiscout.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.0",
        "prometheus-client>=0.17",
        "jsonschema[format-nongpl]>=4.18",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
