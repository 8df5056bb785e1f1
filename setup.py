#!/usr/bin/env python
from setuptools import find_packages, setup

VERSION = __import__("elibro").get_version()
INSTALL_REQUIREMENTS = [
    "Django>=4.2",
    "defusedxml",
    "psycopg2-binary",
    "requests",
    "sentry-sdk",
    "structlog",
]
TEST_REQUIREMENTS = ["pytest", "pytest-django"]
SCRIPTS = ["manage.py"]
DESCRIPTION = "Project Gutenberg catalog synchronization"
CLASSIFIERS = """\
Environment :: Console
Framework :: Django
Programming Language :: Python
Programming Language :: Python :: 3
""".splitlines()

with open("README.md", "r") as f:
    LONG_DESCRIPTION = f.read()


setup(
    name="elibro",
    version=VERSION,
    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["*.tests", "*.tests.*"]),
    include_package_data=True,
    scripts=SCRIPTS,
    install_requires=INSTALL_REQUIREMENTS,
    extras_require={"test": TEST_REQUIREMENTS},
    classifiers=CLASSIFIERS,
    python_requires=">=3.11.4",
)
