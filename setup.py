from setuptools import setup, find_packages

setup(
    name="ctxbundle",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "pyyaml",
        "textual",
        "tqdm>=4.60",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "ctxbundle=ctxbundle.cli:main",
        ],
    },
    description="Bundle project files into a single context document and apply SEARCH/REPLACE edits back.",
)
