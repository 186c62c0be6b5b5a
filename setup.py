"""Setup configuration for action-hooks."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="s2i-action-hooks",
    version="0.1.0",
    author="Eve",
    description="Lifecycle hooks around Source-to-Image assemble and run scripts",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["actionhooks", "actionhooks.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Build Tools",
    ],
    python_requires=">=3.9",
    install_requires=[
        "click>=8.0",
        "rich>=13.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "action-hooks=actionhooks.cli:main",
        ],
    },
)
