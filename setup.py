"""
panelforms setup.py — Package configuration.
"""

from setuptools import find_packages, setup

setup(
    name="panelforms",
    version="0.3.0",
    description="panelforms — Server-driven forms for admin-panel components",
    packages=find_packages(include=["panelforms", "panelforms.*"]),
    python_requires=">=3.11",
    install_requires=[
        "sqlalchemy>=2.0",
        "pydantic[email]>=2.5",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
)
