"""
Setup script for learnhub-ai.

LearnHub AI is the generation core of the LearnHub study companion:

1. Provider orchestration - on-device model first, Groq (BYOK) as fallback
2. Tag-format parsing - quiz questions and flashcards from free-form LLM output
3. Tutor chat - formatted replies, quick prompts and image analysis

The 'learnhub' command exposes every operation from the terminal.
"""

import os

from setuptools import find_packages, setup

setup(
    name="learnhub-ai",
    version="1.0.0",
    description="AI study companion core: provider fallback, tag parsing and tutoring",
    long_description=open("README.md", encoding="utf-8").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="LearnHub",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # On-device model runtime
        "ollama>=0.4.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "learnhub=learnhub.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning flashcards quiz llm tutor cli education",
)
