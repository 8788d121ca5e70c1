#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Entry point for running the page compiler as a module.

Usage:
    python -m page_compiler index_jsp.java --scratch-dir ./classes --json
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
