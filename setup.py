from pathlib import Path

from setuptools import setup

this_directory = Path(__file__).parent
long_description = (this_directory / "README.rst").read_text()

setup(
    name="callsite_ioc",
    version="0.1.0",
    license="MIT",
    description="Call-site based dependency injection with scoped lifetimes for Python 3.10 +",
    long_description=long_description,
    long_description_content_type="text/x-rst",
    packages=["callsite_ioc"],
    include_package_data=True,
    platforms="any",
    python_requires=">=3.10",
    install_requires=["theutilitybelt"],
    extras_require={"test": ["pytest", "assertive"]},
    classifiers=[
        "Programming Language :: Python",
        "Development Status :: 4 - Beta",
        "Natural Language :: English",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Software Development :: Libraries :: Application Frameworks",
    ],
)
