#!/usr/bin/env python

"""
Coordimap OpenTelemetry Exporter
================================

**An OpenTelemetry span exporter for Coordimap.** It turns finished spans into
topology components and relationships and posts them to the Coordimap
collector.
"""

import os
from setuptools import setup, find_packages

here = os.path.abspath(os.path.dirname(__file__))


def get_file_text(file_name):
    with open(os.path.join(here, file_name)) as in_file:
        return in_file.read()


setup(
    name="coordimap-otel-exporter",
    version="0.3.0",
    author="Coordimap Team and Contributors",
    url="https://github.com/coordimap/cm-otel-exporter-python",
    description="OpenTelemetry span exporter for Coordimap (https://coordimap.com)",
    long_description=get_file_text("README.md"),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=("tests", "tests.*")),
    # PEP 561
    package_data={"coordimap_otel": ["py.typed"]},
    zip_safe=False,
    license="MIT",
    python_requires=">=3.8",
    install_requires=[
        "urllib3>=1.26.11",
        "certifi",
        "opentelemetry-api>=1.20.0",
        "opentelemetry-sdk>=1.20.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: System :: Monitoring",
    ],
    options={"bdist_wheel": {"universal": "1"}},
)
