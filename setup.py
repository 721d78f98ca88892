#!/usr/bin/env python

from setuptools import setup

setup(
    name="estyped",
    version="0.1.0",
    description="Typed client for the Elasticsearch HTTP API",
    packages=["estyped", "estyped.analysis"],
    include_package_data=True,
    zip_safe=False,
    keywords=["elasticsearch", "search", "client"],
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Topic :: Database :: Front-Ends",
    ],
    python_requires=">=3.10",
    install_requires=[
        "elasticsearch~=8.6",
        "python-dotenv",
        "requests",
        "pydantic>=2",
        "pydantic-settings",
        "typing_extensions",
        "class-doc",
    ],
    extras_require={
        'dev': [
            'pytest',
            'mypy',
            'flake8',
            'responses',
            'pre-commit',
        ]
    },
)
