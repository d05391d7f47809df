from setuptools import find_namespace_packages, setup


setup(
    name="hibersetup",
    version="1.0.0",
    description="Configures swap partition hibernation on Ubuntu",
    author="desultory",
    package_dir={"": "src"},
    packages=find_namespace_packages("src", include=["hibersetup*"]),
    package_data={
        "hibersetup": ["*/*.toml"]
    },
    python_requires=">=3.11",
    install_requires=['zenlib>=2.3.0'],
    extras_require={
        "test": ["pytest"]
    },
    entry_points={
        "console_scripts": [
            "hibersetup = hibersetup.main:main"
        ]
    }
)
