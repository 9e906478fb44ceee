#!/usr/bin/env python3
"""
Serato Import - Setup Configuration
Import newly downloaded audio into a Serato DJ Pro library, keeping the best copy of each track
"""

from setuptools import setup, find_packages

# Read README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Core dependencies for basic functionality
core_requirements = [
    "mutagen>=1.47.0",      # Audio metadata handling (bitrate probe, comment tagger)
    "tqdm>=4.66.0",         # Progress bars
    "python-dotenv>=1.0.0", # Environment variables
]

# Development dependencies
dev_requirements = [
    "pytest>=7.0.0",
    "pytest-cov>=4.0.0",
    "black>=23.0.0",
    "flake8>=6.0.0",
    "mypy>=1.0.0",
]

setup(
    # Package information
    name="serato-import",
    version="1.0.0",
    author="RamC Venkatasamy",
    author_email="ramc46@example.com",  # Update with actual email
    description="Import new audio files into Serato DJ Pro with bitrate based deduplication",
    long_description=long_description,
    long_description_content_type="text/markdown",

    # Package discovery
    packages=find_packages(exclude=["tests*", "test_*", "*.tests*"]),
    include_package_data=True,

    # Dependencies
    install_requires=core_requirements,
    extras_require={
        "dev": dev_requirements,
    },

    # Console entry points
    entry_points={
        "console_scripts": [
            "serato-import=seratoimport.cli.import_cli:main",
        ],
    },

    # Python version and classifiers
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Environment :: Console",
        "Operating System :: MacOS :: MacOS X",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Sound/Audio",
        "Topic :: Utilities",
    ],

    # Keywords for PyPI search
    keywords=[
        "dj", "music", "audio", "serato", "bitrate", "crate",
        "music-library", "m4a", "deduplication"
    ],

    # Additional metadata
    zip_safe=False,
    platforms=["any"],
)
