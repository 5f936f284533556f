from setuptools import setup, find_packages

setup(
    name="hl7bridge",
    version="1.0.0",
    packages=find_packages(include=["hl7bridge", "hl7bridge.*"]),
    install_requires=[
        "fastapi",
        "uvicorn",
        "pydantic>=2",
        "python-dotenv",
        "hl7",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ],
    },
)
