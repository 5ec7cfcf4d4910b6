"""
btnotify - Bluetooth notification delivery
Sends notifications to paired desktops over RFCOMM
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="btnotify",
    version="1.0.0",
    description="Deliver notifications over Bluetooth RFCOMM with readiness wait and retries",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["btnotify", "btnotify.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Communications",
        "Topic :: System :: Networking",
    ],
    python_requires=">=3.10",
    install_requires=[
        "cbor2>=5.4.0",
        "click>=8.0.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.23.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "btnotify=btnotify.cli:main",
        ],
    },
)
