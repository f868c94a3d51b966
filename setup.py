"""
Setup script for statementrecon

Allows editable install for the upload service and other integrations:
    pip install -e .

This ensures the statementrecon engine and its bundled bank profiles are importable.
"""

from setuptools import setup, find_packages

# Use include pattern to ensure all subpackages (like parsers) are included
setup(
    name="statementrecon",
    version="0.1.0",
    packages=find_packages(include=["statementrecon", "statementrecon.*"]),
    install_requires=[
        "pandas>=2.0.0",
        "PyYAML>=6.0.0",
        "pydantic>=2.0.0",
        "python-dateutil>=2.8.0",
        "python-dotenv>=1.0.0",
        "typer>=0.9.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0.0"],
    },
    entry_points={
        "console_scripts": [
            "statementrecon=statementrecon.cli.main:app",
        ],
    },
    package_data={"statementrecon": ["profiles/*.yaml"]},
    python_requires=">=3.9",
    author="statementrecon Team",
    description="Bank statement parsing and balance reconciliation engine (profiles, registry, CLI)",
    include_package_data=True,
)
