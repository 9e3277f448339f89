#!/usr/bin/env python3
"""
Setup script for Blunder.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""

setup(
    name="blunder",
    version="0.1.0",
    description="Error and exception interception with pluggable HTML, JSON, XML, text and CLI output",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Blunder Contributors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "blunder": ["templates/*.html", "assets/*.css", "assets/*.js"],
    },
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "jinja2>=3.1.0",
        "click>=8.1.0",
        "PyYAML>=6.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Debuggers",
        "Topic :: Software Development :: Libraries",
    ],
    keywords="error handler exception debug page traceback",
)
