from pathlib import Path
from setuptools import setup, find_packages


def read_readme() -> str:
    readme_path = Path(__file__).resolve().parent / "README.md"
    return readme_path.read_text(encoding="utf-8") if readme_path.exists() else ""


setup(
    name="fs2sbc",
    version="1.0.0",
    packages=find_packages(include=["fs2sbc", "fs2sbc.*"]),
    install_requires=[
        "colorama>=0.4.6",
    ],
    entry_points={
        "console_scripts": ["fs2sbc=fs2sbc.console:main"],
    },
    python_requires=">=3.10",
    description="Pack a file or directory tree into a single binary container",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
)
