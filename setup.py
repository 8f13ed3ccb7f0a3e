#!/usr/bin/env python3
"""
pose-stream - IMU pose inference streaming

Install with `pip install -e .[dev]` for development.
"""

from setuptools import setup, find_packages
from pathlib import Path

HERE = Path(__file__).parent


def read_requirements(name="requirements.txt"):
    """Runtime dependencies, one specifier per line."""
    path = HERE / name
    if not path.exists():
        return []
    return [
        line.strip()
        for line in path.read_text().splitlines()
        if line.strip() and not line.startswith("#")
    ]


readme = HERE / "README.md"

setup(
    name="pose-stream",
    version="1.0.0",
    author="Pose Stream Contributors",
    author_email="",
    description="Stream IMU pose inference to a Socket.IO visualization server",
    long_description=readme.read_text(encoding="utf-8") if readme.exists() else "",
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Human Machine Interfaces",
    ],
    python_requires=">=3.9",
    install_requires=read_requirements(),
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "pose-stream=pose_stream.cli:main",
        ],
    },
    zip_safe=False,
)
