from setuptools import setup


def readme():
    with open("README.md") as f:
        return f.read()


setup(
    name="beandi",
    version="0.1.0",
    description=(
        "Constructor and setter dependency injection for Python 3, "
        "configured with XML bean definitions"
    ),
    long_description=readme(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: OS Independent",
    ],
    keywords="dependency injection beans xml constructor setter",
    license="MIT",
    packages=["beandi", "constructor_injection", "setter_injection"],
    package_data={
        "constructor_injection": ["*.xml"],
        "setter_injection": ["*.xml"],
    },
    python_requires=">=3.9",
    install_requires=[],
    extras_require={"test": ["pytest"]},
    include_package_data=True,
    zip_safe=False,
)
