#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from setuptools import setup, find_packages

setup(
    name="page-compiler",
    version="0.1.0",
    description="Compiles generated page sources with an external Java compiler and maps errors back to the page",
    author="Max Qian",
    author_email="lightapt@example.com",
    packages=find_packages(include=["page_compiler", "page_compiler.*"]),
    python_requires=">=3.11",
    install_requires=[
        "loguru>=0.5.0",
        "pydantic>=2.0",
        "aiofiles>=0.8.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0.0",
            "pytest-mock>=3.6.0",
            "black>=21.5b2",
            "mypy>=0.812",
        ],
    },
    entry_points={
        "console_scripts": [
            "page-compiler=page_compiler.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Compilers",
    ],
)
