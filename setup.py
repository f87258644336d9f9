import sys
from pathlib import Path

from setuptools import setup, find_namespace_packages

if sys.version_info[0:2] < (3, 10):
    raise RuntimeError("This package requires Python 3.10+.")

setup(
    name="moat-lib-pid",
    version="0.2.0",
    packages=find_namespace_packages(include=["moat.*"]),
    url="https://github.com/M-o-a-T/moat",
    license="MIT",
    author="Matthias Urlichs",
    author_email="<matthias@urlichs.de>",
    description="Discrete-time PID controllers with anti-windup and bumpless transfer",
    long_description=Path(__file__).with_name("README.rst").read_text(encoding="utf-8"),
    long_description_content_type="text/x-rst",
    install_requires=[
        "attrs>=22.2",
        "moat-util",
        "numpy>=2.0",
    ],
    extras_require={
        "test": ["pytest"],
        "examples": ["matplotlib"],
    },
    python_requires=">=3.10",
    classifiers=[
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering",
        "License :: OSI Approved",
    ],
)
