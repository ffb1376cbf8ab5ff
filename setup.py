from setuptools import setup, find_packages
import os

# Read the contents of README file
this_directory = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

# Read version from _version.py
version = {}
with open(os.path.join(this_directory, 'pandas_factors', '_version.py')) as f:
    exec(f.read(), version)

setup(
    name="pandas-factors",
    version=version["__version__"],
    author="Your Name",
    author_email="your.email@example.com",
    description="Fast integer coding of categorical variables and their combinations",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/your-username/pandas-factors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.19.0",
        "pandas>=1.3.0",
        "numba>=0.56.0",
        "polars>=0.15.0",
        "pyarrow>=10.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-xdist",
            "black",
            "flake8",
            "isort",
            "mypy",
        ],
        "test": [
            "pytest>=6.0",
            "pytest-xdist",
        ],
    },
    keywords="pandas factor categorical factorize combinations numba numpy",
    project_urls={
        "Bug Reports": "https://github.com/your-username/pandas-factors/issues",
        "Source": "https://github.com/your-username/pandas-factors",
    },
    include_package_data=True,
    zip_safe=False,
)
