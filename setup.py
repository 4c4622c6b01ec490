#!/usr/bin/env python

from setuptools import find_packages, setup

setup(
    name="saml-idp",
    version="1.0.0",
    license="Apache Software License",
    description="Signing and signature trust for SAML 2.0 Identity Providers",
    long_description=open("README.rst").read(),
    python_requires=">=3.8",
    install_requires=[
        "lxml >= 5.2.1, < 6",  # Ubuntu 24.04 LTS
        "cryptography >= 43",
    ],
    extras_require={
        "tests": [
            "ruff",
            "coverage",
            "build",
            "wheel",
            "mypy",
            "lxml-stubs",
        ],
        "docs": [
            "sphinx",
            "furo",
            "sphinx-copybutton",
        ],
    },
    packages=find_packages(exclude=["test"]),
    platforms=["MacOS X", "Posix"],
    package_data={"saml_idp": ["py.typed"]},
    include_package_data=True,
    test_suite="test",
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: MacOS :: MacOS X",
        "Operating System :: POSIX",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Security :: Cryptography",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
)
