from setuptools import find_namespace_packages, setup

setup(
    name="subtitle-delivery-backend",
    version="0.1.0",
    packages=find_namespace_packages(include=["services*", "shared*"]),
    py_modules=["app", "bootloader"],
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "pydantic>=2.5",
        "uvicorn>=0.27",
        "aiohttp>=3.9",
        "redis>=5.0",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "srt>=3.5",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx>=0.27",
        ],
    },
    include_package_data=True,
    description="Subtitle delivery backend (subtitle streams, HLS subtitle playlists, remote subtitles)",
)
