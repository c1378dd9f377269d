#!/usr/bin/env python3
"""
Setup script for EV Voltage Log Analyzer
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding='utf-8') if readme_file.exists() else ""

setup(
    name="ev-voltage-log-analyzer",
    version="0.1.0",
    description="Voltage quality analysis of OCPP charge point logs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: System :: Logging",
        "Topic :: Utilities",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
    install_requires=[
        "rich>=13.0.0",         # Terminal UI with colors, tables, progress bars
        "pandas>=1.3.0",        # CSV export / re-import
        "python-dateutil>=2.9.0",  # Timestamp parsing and display time zones
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        'console_scripts': [
            'ocpp-voltage-analyzer=analyzers.ocpp_voltage.analyze:main',
        ],
    },
    include_package_data=True,
    zip_safe=False,
)
