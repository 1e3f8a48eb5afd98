from setuptools import setup, find_packages

setup(
    name="portfolio-allocator",
    version="1.0.0",
    author="Portfolio Allocator Team",
    description="Allocation engine for deploying new money toward a target portfolio mix",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    package_data={
        "allocation_engine": ["py.typed"],
        "allocator_config": ["py.typed"],
        "quote_resolver": ["py.typed"],
        "portfolio_store": ["py.typed"],
        "portfolio_session": ["py.typed"],
        "quote_service": ["py.typed"],
    },
    install_requires=[
        "pydantic==2.11.7",
        "PyYAML==6.0.2",
        "aiohttp==3.12.15",
        "fastapi>=0.110",
        "uvicorn>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "httpx>=0.27",
        ],
    },
    entry_points={
        "console_scripts": [
            "portfolio-allocator=portfolio_session.cli:main",
            "portfolio-quote-service=quote_service.main:run",
        ],
    },
    python_requires=">=3.11",
)
