#!/usr/bin/env python3
"""
Book Analyzer - Split textbook PDFs into chapters and extract their questions using AI.

This is a thin wrapper that calls the main CLI module.
"""

import sys

from book_analyzer.cli import main

if __name__ == "__main__":
    sys.exit(main())
