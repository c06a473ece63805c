from setuptools import setup, find_packages
from pathlib import Path

setup(
    name="dental_budget",
    version=Path("./dental_budget/VERSION").read_text().strip(),
    packages=find_packages(include=["dental_budget", "dental_budget.*"]),
    package_data={"dental_budget": ["VERSION"]},
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "opencv-python-headless",
        "matplotlib",
        "easydict",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["dental_budget=dental_budget.cli:main"],
    },
)
