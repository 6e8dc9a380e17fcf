"""
Setup script for pawcalm-engine.

PawCalm turns a dog's separation-anxiety training logs into progress
decisions:

1. Progress snapshots - streaks, calm rates, weekly windows
2. Per-practice decisions - next cue, mastery, absence target duration
3. Motivation - milestone unlocks and rule-based insights

The 'pawcalm' command exposes each decision for a JSON training export.
"""

from setuptools import find_packages, setup

setup(
    name="pawcalm-engine",
    version="0.1.0",
    description="Adaptive training progress engine for separation anxiety training",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="PawCalm",
    packages=find_packages(include=["pawcalm", "pawcalm.*"]),
    python_requires=">=3.11",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "pawcalm=pawcalm.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="dog-training separation-anxiety progress mastery cli",
)
