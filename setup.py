from setuptools import setup, find_packages

setup(
    name="zapcat-agent",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        'click>=8.0',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
    entry_points={
        'console_scripts': [
            'zapcat-agent=zapcat_agent.main:cli',
        ],
    },
)
