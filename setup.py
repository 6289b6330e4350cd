"""Setup script for taskweave: package discovery plus the bundled task catalogue."""
from setuptools import setup, find_packages

setup(
    name="taskweave",
    version="0.1.0",
    description="Convert osmosis-style pipeline command lines to typed function graphs and back",
    python_requires=">=3.8",
    packages=find_packages(where=".", include=("taskweave", "taskweave.*")),
    package_dir={"": "."},
    package_data={"taskweave": ["templates/*.yaml"]},
    install_requires=["omegaconf>=2.1"],
    extras_require={"test": ["pytest>=7"]},
    entry_points={"console_scripts": ["taskweave=taskweave.cli:main"]},
)
