"""FieldCipher setup."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="fieldcipher",
    version="1.0.0",
    packages=find_packages(include=["fieldcipher", "fieldcipher.*"]),
    install_requires=[
        "cryptography>=41.0.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fieldcipher=fieldcipher.__main__:main",
        ],
    },
    python_requires=">=3.10",
    author="FieldCipher",
    author_email="",
    description="Self-describing encrypted envelopes for individual values",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Security :: Cryptography",
    ],
    keywords="cryptography, encryption, field-level encryption, aes",
)
