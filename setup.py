"""
Setup script for the User Admin Console.

Allows development installation with `pip install -e .`
"""

from setuptools import setup, find_packages

setup(
    name="user-admin-console",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"admin_console": ["templates/*.html", "templates/partials/*.html"]},
    python_requires=">=3.11",
    install_requires=[
        "flask",
        "requests",
        "python-dotenv",
        "cachetools",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "admin-console=admin_console.__main__:main",
        ],
    },
)
