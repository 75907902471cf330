#!/usr/bin/env python3

from setuptools import find_namespace_packages, setup


def get_version():
    with open("debian/changelog", "r", encoding="utf-8") as f:
        return f.readline().split()[1][1:-1]


setup(
    name="pdjr-skplugin-mqttgw",
    version=get_version(),
    description="Exchange data between a Signal K style data bus and an MQTT broker",
    license="Apache-2.0",
    author="Paul Reeve",
    author_email="preeve@pdjr.eu",
    packages=find_namespace_packages(include=["pdjr", "pdjr.*"]),
    python_requires=">=3.9",
    install_requires=[
        "paho-mqtt>=2.0",
        "pydantic>=2.0",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
