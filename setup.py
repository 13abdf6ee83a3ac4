#!/usr/bin/env python3
"""
Setup script for the IIIT Naya Raipur Alumni Portal backend

Install with:
    pip install -e .

With test dependencies:
    pip install -e ".[test]"
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

requirements = [
    "fastapi>=0.109.0",
    "uvicorn[standard]>=0.27.0",
    "sqlalchemy[asyncio]>=2.0.25",
    "asyncpg>=0.29.0",
    "aiosqlite>=0.19.0",
    "pydantic>=2.5.0",
    "pydantic-settings>=2.1.0",
    "email-validator>=2.1.0",
    "python-jose[cryptography]>=3.3.0",
    "bcrypt>=4.1.0",
    "slowapi>=0.1.9",
    "redis>=5.0.0",
    "aiosmtplib>=3.0.0",
    "sendgrid>=6.11.0",
    "python-multipart>=0.0.6",
    "openpyxl>=3.1.2",
    "aiofiles>=23.2.1",
]

setup(
    name="alumni-portal",
    version="1.0.0",
    description="Alumni portal API: verified registration, directory, news and events",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="IIIT-NR Alumni Cell",
    license="MIT",
    packages=find_packages(include=["alumni_portal", "alumni_portal.*"]),
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest>=7.4.0",
            "pytest-asyncio>=0.24.0",
            "httpx>=0.26.0",
            "faker>=22.0.0",
            "aiosqlite>=0.19.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "alumni-manage-db=alumni_portal.scripts.manage_db:main",
            "alumni-make-admin=alumni_portal.scripts.make_admin:main",
            "alumni-import-records=alumni_portal.scripts.import_institute_records:main",
            "alumni-verify-records=alumni_portal.scripts.verify_institute_records:main",
            "alumni-link-record=alumni_portal.scripts.link_user_to_record:main",
            "alumni-records-template=alumni_portal.scripts.generate_template:main",
            "alumni-test-email=alumni_portal.scripts.send_test_email:main",
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
    keywords="alumni portal fastapi directory events",
)
