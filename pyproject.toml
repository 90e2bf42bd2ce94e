[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cni_ipam"
version = "0.1.0"
description = "IP address management plugins for container networks: host-local and static allocation, plus DHCP option decoding"
requires-python = ">=3.10"
dependencies = []
keywords = ["cni", "ipam", "containers", "networking", "ip-allocation", "dhcp"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
cni-host-local = "cni_ipam.host_local:main"
cni-static = "cni_ipam.static:main"

[tool.hatch.build.targets.wheel]
packages = ["cni_ipam"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
