"""
Household Splits - Setup Configuration
"""
from setuptools import setup, find_packages
from pathlib import Path

# Read README
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text()

setup(
    name="household-splits",
    version="1.0.0",
    description="Rule-based expense splitting for shared households",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["household_splits", "household_splits.*"]),
    python_requires=">=3.10",
    install_requires=[
        "psycopg2-binary>=2.9.9",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.3",
            "pytest-cov>=4.1.0",
            "black>=23.12.1",
            "flake8>=7.0.0",
            "mypy>=1.8.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "splits-init=household_splits.cli.init_db:main",
            "splits-apply=household_splits.cli.apply_rules:main",
            "splits-test-rule=household_splits.cli.rule_tester:main",
            "splits-review=household_splits.cli.review:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Office/Business :: Financial",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    include_package_data=True,
    package_data={
        "household_splits": [
            "db/*.sql",
        ],
    },
)
