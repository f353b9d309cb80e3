"""
LUMEN CLEW - Plain-language repository scanner

Scans a GitHub repository with four analyzers (code quality, dependency
vulnerabilities, secrets, accessibility) and rewrites every finding into
warm, educational language for developers.

Copyright (c) 2025
Licensed under MIT License
"""

__version__ = "1.0.0"
__author__ = "Lumen Clew Team"
__status__ = "Development"
