#!/usr/bin/env python
from setuptools import find_packages, setup

setup(
    name="vaultauth",
    version="0.0.1",
    description="Session, KV v2 operations and background token renewal for HashiCorp Vault clients.",
    packages=find_packages(
        include=[
            "vaultauth",
        ],
        exclude=["test", ".github"]
    ),
    python_requires=">=3.8",
    install_requires=[
        "hvac>=2.0.0",
        "requests>=2.27",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
