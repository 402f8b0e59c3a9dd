from setuptools import setup, find_packages

setup(
    name="moverec",
    version="1.0.0",
    description="moverec: Move Method/Field Refactoring Recommender",
    author="moverec Team",
    packages=find_packages(include=["moverec", "moverec.*"]),
    install_requires=[
        "networkx>=3.1",
        "numpy>=1.24.0",
        "pydantic>=2.0.0",
        "python-dotenv>=1.0.0",
        "pyyaml>=6.0.0",
        "scikit-learn>=1.4.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    python_requires=">=3.10",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3.10",
    ],
    entry_points={
        "console_scripts": [
            "moverec=moverec.cli:main",
        ],
    },
)
