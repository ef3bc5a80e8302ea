from setuptools import setup, find_packages
import os

install_requires = ["lark", "pydantic>=2", "structlog"]

# Define optional dependencies for development
extras_require = {"dev": ["pytest"]}

setup(
    name="retrofit-php",
    version="1.0.0",
    packages=find_packages(where=".", exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "retrofit = retrofit.cli:main",
        ],
    },
    include_package_data=True,
    package_data={"retrofit.parser": ["php.lark"]},
    description="Structural patching of PHP plugin and module scaffolding, and class synthesis from base types.",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
)
