"""
Setup file.
"""

from setuptools import setup

KEYWORDS = "opentelemetry collector builder distribution code-generation go toolchain"


if __name__ == "__main__":
    setup(keywords=KEYWORDS)
