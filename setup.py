# setup.py
"""Setup script for flowgen."""

from setuptools import setup, find_packages

setup(
    name="flowgen",
    version="1.0.0",
    description="Convert Flowise-style workflow graphs into LangChain.js TypeScript projects",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=[
        "click>=8.0",
        "pyyaml>=6.0",
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "jinja2>=3.0",
        "structlog>=23.0",
        "networkx>=3.0",
        "graphviz>=0.20",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "flake8>=6.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "flowgen=cli.main:cli",
        ],
    },
    python_requires=">=3.8",
)
