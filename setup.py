"""A setuptools based setup module.
"""
from setuptools import setup

# project metadata and dependencies are declared in pyproject.toml
setup()
