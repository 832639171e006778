from setuptools import setup, find_packages

setup(
    name="ach-cli",
    version="0.1.0",
    description="Admin CLI for Cozy-style document platforms (import/export/scripts)",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    python_requires=">=3.9",
    install_requires=["InquirerPy", "tqdm"],
    extras_require={"test": ["pytest"]},
    entry_points={
        "console_scripts": [
            "ach=ach_cli.__main__:main",
        ]
    },
)
