from setuptools import setup, find_packages

setup(
    name="seawatch",
    version="1.0.0",
    description="Seaport event replay and checkpointing service",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[
        "sqlalchemy[asyncio]>=2.0.0",
        "asyncpg>=0.25.0",
        "alembic>=1.12.0",
        "pydantic>=2.0.0",
        "python-dotenv>=0.19.0",
        "tenacity>=8.0.0",
        "web3>=7.0.0",
        "eth-abi>=5.0.0",
        "websockets>=14.1",  # For WebSocket provider
        "fastapi>=0.100.0",
        "uvicorn>=0.23.0",
        "prometheus-client>=0.17.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "aiosqlite>=0.19.0",
            "httpx>=0.24.0",
            "hexbytes>=1.2.0",
            "black>=21.0.0",
            "isort>=5.0.0",
        ]
    }
)
