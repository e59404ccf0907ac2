from pathlib import Path

from setuptools import find_packages, setup

ROOT = Path(__file__).parent

# Read requirements (ignore comments and recursive -r entries)
req_path = ROOT / "requirements.txt"
requirements = []
if req_path.exists():
    for line in req_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or line.startswith("-r"):
            continue
        requirements.append(line)

# Pi-only packages stay in the "hardware" extra
core_requirements = [
    r for r in requirements if not any(marker in r for marker in ["; platform_system==", "; platform_machine=="])
]

readme = (ROOT / "README.md").read_text(encoding="utf-8") if (ROOT / "README.md").exists() else ""

setup(
    name="reef-controller",
    version="0.1.0",
    description="Reef aquarium controller driven by the Risp channel language",
    long_description=readme,
    long_description_content_type="text/markdown",
    packages=find_packages(include=("reef", "reef.*", "infrastructure", "infrastructure.*")),
    py_modules=["reef_controller"],
    python_requires=">=3.10,<4",
    install_requires=core_requirements,
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "pytest-cov>=4.1.0",
        ],
        "hardware": [
            "RPi.GPIO>=0.7.1",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Home Automation",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Operating System :: POSIX :: Linux",
    ],
    keywords="reef aquarium raspberry-pi i2c mqtt automation",
    entry_points={
        "console_scripts": [
            "reef-controller=reef_controller:main",
        ]
    },
    include_package_data=True,
)
