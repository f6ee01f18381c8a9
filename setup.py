#!/usr/bin/env python
from setuptools import find_packages, setup

VERSION = __import__("photoblog").get_version()
INSTALL_REQUIREMENTS = [
    "Django>=5.0",
    "celery[redis]>=5.3",
    "django-redis",
    "Pillow",
    "psycopg[binary]",
    "sentry-sdk",
    "structlog",
]
TEST_REQUIREMENTS = ["pytest", "pytest-django"]
SCRIPTS = ["manage.py"]
DESCRIPTION = "Photoblog with a resumable media archive importer"
CLASSIFIERS = """\
Environment :: Web Environment
Framework :: Django
Programming Language :: Python
Programming Language :: Python :: 3.11
""".splitlines()

with open("README.md", "r") as f:
    LONG_DESCRIPTION = f.read()


setup(
    name="photoblog",
    version=VERSION,
    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    long_description_content_type="text/markdown",
    packages=find_packages(),
    include_package_data=True,
    scripts=SCRIPTS,
    install_requires=INSTALL_REQUIREMENTS,
    extras_require={"test": TEST_REQUIREMENTS},
    python_requires=">=3.11",
    classifiers=CLASSIFIERS,
)
