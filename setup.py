"""Setup script for calgrid."""

from pathlib import Path

from setuptools import find_packages, setup

# Read the README file
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

# Read requirements, separating test-only dependencies
requirements_file = Path(__file__).parent / "requirements.txt"
requirements = []
test_requirements = []

if requirements_file.exists():
    for line in requirements_file.read_text().strip().split("\n"):
        line = line.strip()
        # Skip empty lines and comments
        if not line or line.startswith("#"):
            continue

        if "pytest" in line:
            test_requirements.append(line)
        else:
            requirements.append(line)

setup(
    name="calgrid",
    version="0.1.0",
    description="Weekly availability grids combined from iCalendar feeds and manual selections",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="calgrid contributors",
    packages=find_packages(include=["calgrid", "calgrid.*"]),
    include_package_data=True,
    install_requires=requirements,
    extras_require={
        "test": test_requirements,
        "color": ["colorlog>=6.7.0"],
        "dev": test_requirements
        + [
            "colorlog>=6.7.0",
            "mypy>=1.0.0",
            "ruff>=0.4.0",
        ],
    },
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business :: Scheduling",
        "Framework :: AsyncIO",
    ],
    keywords="calendar ics availability scheduling grid",
    entry_points={
        "console_scripts": [
            "calgrid=calgrid.__main__:main",
        ],
    },
    package_data={"calgrid": ["py.typed"]},
    zip_safe=False,
)
