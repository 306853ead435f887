#!/usr/bin/env python3
"""
Setup script for LifeOS Realtime
API gateway and notification fan-out service
"""

from setuptools import setup, find_packages

# Read the README for long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="lifeos-realtime",
    version="1.0.0",
    description="LifeOS API gateway and real-time notification fan-out service",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Framework :: FastAPI",
        "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.10",
    install_requires=[
        "fastapi>=0.110.0",
        "uvicorn[standard]>=0.27.0",
        "httpx>=0.26.0",
        "pydantic>=2.5.0,<3.0",
        "PyJWT>=2.8.0",
        "prometheus-client>=0.19.0",
        "structlog>=23.2.0",
        "PyYAML>=6.0",
        "typer[all]>=0.9.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "lifeos=lifeos.cli:app",
        ],
    },
    include_package_data=True,
    keywords="api-gateway reverse-proxy websocket notifications fastapi",
)
