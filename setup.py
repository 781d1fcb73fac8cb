# setup.py
from setuptools import setup, find_packages

setup(
    name="finance-tracker",
    version="0.1.0",
    description="Personal finance tracker: transactions API, CSV import and spending summaries",
    author="Your Name",
    author_email="you@example.com",
    url="https://github.com/yourusername/finance-tracker",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "click>=8.0",
        "pyyaml>=5.3",
        "pandas>=1.5",
        "python-dotenv>=1.0",
        "sqlalchemy>=2.0",
        "fastapi>=0.100",
        "pydantic>=2.0",
        "python-multipart>=0.0.6",
        "uvicorn>=0.20",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "httpx>=0.24",
        ],
    },
    entry_points={
        "console_scripts": [
            "finance-tracker=finance_tracker.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
