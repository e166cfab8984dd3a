"""Setup configuration for devpulse"""

from setuptools import setup, find_packages

setup(
    name="devpulse-analytics",
    version="0.1.0",
    description=(
        "Developer-activity analytics: calendar heatmaps, weekly/monthly "
        "roll-ups, period-over-period comparisons and top repositories."
    ),
    author="DevPulse Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "devpulse-report=devpulse.main:main",
        ],
    },
)
