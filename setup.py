# Package installation script

from setuptools import setup, find_packages

setup(
    name="home_bridge",
    version="0.1.0",
    packages=find_packages(where="src", exclude=["tests", "tests.*"]),
    package_dir={"": "src"},
    entry_points={
        "console_scripts": [
            "home_bridge=home_bridge.__main__:main",
        ],
    },
    python_requires=">=3.10",
    install_requires=[
        "fastapi",
        "hypercorn",
        "pyyaml",
        "aiomqtt>=2.0",
        "aiosqlite",
        "pydantic>=2.0",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
)
