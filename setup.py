from setuptools import setup, find_packages
from pathlib import Path


def read_readme():
    this_directory = Path(__file__).parent
    readme_file = this_directory / 'README.md'
    if readme_file.exists():
        return readme_file.read_text(encoding='utf-8')
    return ""


def get_version():
    import re
    init_file = Path(__file__).parent / 'dlt_tasks' / '__init__.py'
    match = re.search(r'__version__\s*=\s*["\']([^"\']+)["\']', init_file.read_text())
    if match:
        return match.group(1)
    return "0.1.0"


setup(
    name="dlt-tasks",
    version=get_version(),
    description="Workflow tasks that run dlt (data load tool) CLI commands and pipelines.",
    long_description=read_readme(),
    long_description_content_type='text/markdown',
    packages=find_packages(include=['dlt_tasks', 'dlt_tasks.*']),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2.5",
        "jinja2>=3.1",
        "typer>=0.9",
        "PyYAML>=6.0",
        "docker>=7.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.21",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: System :: Systems Administration",
        "Topic :: Database",
    ],
    keywords="etl elt dlt data pipeline workflow automation",
    entry_points={
        'console_scripts': [
            'dlt-tasks=dlt_tasks.cli.ctl:main',
        ],
    },
)
