#!/usr/bin/env python3
"""
Setup script for pydomtbl
"""

from setuptools import setup, find_packages

setup(
    name="pydomtbl",
    version="0.1.0",
    description="Aggregate HMMER domain tables into per-marker unaligned FASTA files",
    packages=find_packages(include=["domtbl", "domtbl.*"]),
    install_requires=[
        "pyyaml>=6.0",
        "biopython>=1.79",
        "numpy>=1.22.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'domtbl=domtbl.cli.main:main',
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "Programming Language :: Python :: 3",
    ],
    python_requires=">=3.8",
)
