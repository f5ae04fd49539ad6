from setuptools import setup, find_packages

setup(
    name="selenium-grid-exporter",
    version="1.0.0",
    description="Prometheus exporter for Selenium Grid hub slot and session counters",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "prometheus-client>=0.16.0",
        "structlog>=23.1.0",
        "python-json-logger>=2.0.7",
        "requests>=2.31.0",
        "psutil>=5.9.0",
        "click>=8.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "selenium-grid-exporter=selenium_grid_exporter.cli:main",
        ],
    },
    python_requires=">=3.8",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
