#!/usr/bin/env python
"""
SCR Agro Farms Admin Analytics Setup
"""

from pathlib import Path

from setuptools import setup, find_packages

HERE = Path(__file__).parent


def read_requirements(name: str) -> list:
    lines = (HERE / name).read_text(encoding="utf-8").splitlines()
    return [line.strip() for line in lines if line.strip() and not line.lstrip().startswith("#")]


setup(
    name="scr-agro-admin",
    version="1.0.0",
    description="Sales reports and stock alerts behind the SCR Agro Farms admin dashboard",
    long_description=(HERE / "README.md").read_text(encoding="utf-8"),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=read_requirements("requirements.txt"),
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
            "pytest-asyncio>=0.23.0",
            "aiosqlite>=0.19.0",
            "httpx>=0.25.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "scr-agro-api=scr_agro.main:run",
            "scr-agro-seed=scr_agro.ingestion.seed_db:cli",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Framework :: FastAPI",
        "Topic :: Office/Business",
    ],
    zip_safe=False,
)
