#!/usr/bin/env python3
"""
Setup configuration for the Kalcium client package.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README file
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding='utf-8')

# Read requirements
requirements = (this_directory / "requirements.txt").read_text().strip().split('\n')
requirements = [req.strip() for req in requirements if req.strip() and not req.startswith('#')]

setup(
    name="kalcium-client",
    version="1.0.0",
    description="Async client and end-to-end test scenario for the Kalcium terminology server REST API",
    long_description=long_description,
    long_description_content_type="text/markdown",

    # Package configuration
    packages=find_packages(exclude=["tests", "tests.*", "tools"]),
    include_package_data=True,
    zip_safe=False,

    # Python version requirement
    python_requires=">=3.9",

    # Dependencies
    install_requires=requirements,

    # Optional dependencies
    extras_require={
        "dev": [
            # Testing
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.1.0",
            "pytest-mock>=3.11.0",
            "respx>=0.20.0",
            # Code quality
            "black>=23.7.0",
            "flake8>=6.0.0",
            "mypy>=1.5.0",
            "isort>=5.12.0",
        ],
        "test": [
            # Test-only dependencies
            "pytest>=7.4.0",
            "pytest-asyncio>=0.21.0",
            "pytest-mock>=3.11.0",
            "respx>=0.20.0",
        ],
    },

    # Console scripts
    entry_points={
        "console_scripts": [
            "kalcium-test-client=kalcium_client.main:main",
        ],
    },

    # Package metadata
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Text Processing :: Linguistic",
    ],

    keywords="kalcium terminology termbase rest api client",

    # Data files
    package_data={
        "kalcium_client": [
            "py.typed",
        ],
    },

    platforms=["any"],
)
