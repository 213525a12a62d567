#!/usr/bin/env python3
"""
Setup script for the sdrp-broadcast package.
Supports editable installation for development.
"""

from setuptools import setup, find_packages
import os

# Read the contents of README file
this_directory = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_directory, "README.md"), encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="sdrp-broadcast",
    version="1.0.0",
    description="Dashboard backend aggregating Twitch, FiveM and Minecraft data for the SD-RP community",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="SD-RP Team",
    author_email="team@example.com",
    url="https://github.com/example/sdrp-broadcast",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "aiohttp>=3.9.0",
        "pydantic>=2.5.0",
        "python-dotenv>=1.0.0",
        "rich>=13.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.7.0",
        ],
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-mock>=3.12.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "sdrp-broadcast=sdrp_broadcast.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
        "Topic :: Games/Entertainment",
    ],
    keywords="twitch fivem minecraft dashboard aiohttp",
    project_urls={
        "Bug Reports": "https://github.com/example/sdrp-broadcast/issues",
        "Source": "https://github.com/example/sdrp-broadcast",
    },
)
