"""Setup script for the Backoffice admin service"""
from setuptools import find_packages, setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="backoffice",
    version="0.1.0",
    description="Admin back-office core - role-based authorization gate and append-only audit trail",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["backoffice", "backoffice.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Framework :: FastAPI",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn>=0.27.0",
        "sqlalchemy>=2.0.0",
        "alembic>=1.13.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "python-jose[cryptography]>=3.3.0",
        "cryptography>=41.0.0",
        "requests>=2.31.0",
        "slowapi>=0.1.9",
        "prometheus-client>=0.19.0",
        "prometheus-fastapi-instrumentator>=6.1.0",
    ],
    extras_require={
        "postgres": ["psycopg2-binary>=2.9.9"],
        "test": ["pytest>=7.4.0", "httpx>=0.25.0"],
    },
)
