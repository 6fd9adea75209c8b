# setup.py
from setuptools import setup, find_packages

setup(
    name="fintrack",
    version="0.1.0",
    description="A personal finance tracker CLI with catch-up generation of recurring transactions",
    packages=find_packages(include=["fintrack", "fintrack.*"]),
    python_requires=">=3.10",
    install_requires=[
        "click>=7.0",
        "pyyaml>=5.3",
        "python-dotenv>=0.19",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "fintrack=fintrack.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
