from setuptools import setup, find_packages


setup(
    name="autoreply",
    version="0.1.0",
    description="Webex bot that echoes back messages that mention it",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pydantic>=2.7",
        "pydantic-settings>=2.7",
        "typer>=0.12",
        "httpx>=0.27",
        "fastapi>=0.111.0",
        "uvicorn[standard]>=0.30.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
        ]
    },
    entry_points={
        "console_scripts": [
            "autoreply=autoreply.cli:app",
        ]
    },
    python_requires=">=3.10",
)
