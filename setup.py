#!/usr/bin/env python3
"""Setup script for the azurepreview provider"""
from setuptools import setup, find_packages

setup(
    name="azurepreview-provider",
    version="0.1.0",
    description="Azure budgets, subscriptions and resource lookup as declarative CRUD resources",
    author="Azure Cost Optimization Team",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "azure-core>=1.26.0",
        "azure-identity>=1.12.0",
        "azure-mgmt-resource>=21.0.0,<25",
        "azure-mgmt-subscription>=3.1.1",
        "azure-mgmt-consumption>=10.0.0,<11",
        "pyyaml>=6.0",
        "rich>=12.0.0",
        "typer>=0.7.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "azurepreview=azurepreview.cli.main:main",
        ],
    },
    python_requires=">=3.8",
)
