#!/usr/bin/env python3
"""
Setup script for Campus Connect

Install with:
    pip install -e .

With test dependencies:
    pip install -e ".[dev]"
"""

from setuptools import setup, find_packages, find_namespace_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

# API server dependencies
server_requirements = [
    "fastapi>=0.110.0",
    "uvicorn[standard]>=0.27.0",
    "sqlalchemy[asyncio]>=2.0.25",
    "aiosqlite>=0.19.0",
    "asyncpg>=0.29.0",
    "pydantic>=2.6.0",
    "pydantic-settings>=2.1.0",
    "email-validator>=2.1.0",
    "python-jose[cryptography]>=3.3.0",
    "bcrypt>=4.1.0",
    "python-multipart>=0.0.9",
    "aiofiles>=23.2.1",
    "aiosmtplib>=3.0.0",
    "slowapi>=0.1.9",
    "python-dotenv>=1.0.0",
]

# Client dependencies
client_requirements = [
    "httpx>=0.26.0",
]

setup(
    name="campus-connect",
    version="1.0.0",
    description="Campus Connect - report and track campus issues",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="MIT",
    package_dir={"app": "backend/app"},
    packages=(
        find_namespace_packages(where="backend", include=["app", "app.*"])
        + find_packages(include=["campus_client", "campus_client.*"])
    ),
    python_requires=">=3.9",
    install_requires=server_requirements + client_requirements,
    extras_require={
        "client": client_requirements,
        "dev": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.24.0",
            "faker>=22.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "campus-connect=app.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Framework :: FastAPI",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="campus issues fastapi",
)
