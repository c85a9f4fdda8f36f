from setuptools import setup, find_namespace_packages

setup(
    name="battery_insights",
    version="0.1.0",
    packages=find_namespace_packages(include=["battery_insights", "battery_insights.*"]),
    package_data={"battery_insights.services": ["*.yaml"]},
    python_requires=">=3.9",
    install_requires=[
        "fastapi<0.137",
        "uvicorn",
        "sqlalchemy[asyncio]>=2.0",
        "aiosqlite",
        "pydantic>=2",
        "httpx",
        "pyyaml",
        "python-dotenv",
        "slowapi",
    ],
    extras_require={
        "postgres": ["asyncpg"],
        "test": ["pytest", "pytest-asyncio", "httpx"],
    },
)
