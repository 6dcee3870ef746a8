"""
pipe_queue — Named Pipe Message Queue

A single-producer, multi-consumer message queue over a POSIX named pipe,
with length-prefixed framing and advisory locking between consumers.
"""

from setuptools import setup, find_packages
from pathlib import Path

long_description = (Path(__file__).parent / "README.md").read_text(encoding="utf-8")

setup(
    name="pipe-queue",
    version="1.0.0",
    description=(
        "Single-producer, multi-consumer message queue over a POSIX "
        "named pipe."
    ),
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests*", "examples*"]),
    python_requires=">=3.10",
    install_requires=[],
    extras_require={
        "msgpack": ["msgpack>=1.0"],
        "dev": [
            "pytest>=7.0",
            "pytest-timeout",
            "msgpack>=1.0",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: POSIX :: Linux",
        "Operating System :: MacOS",
        "Intended Audience :: Developers",
        "Topic :: System :: Networking",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
)
