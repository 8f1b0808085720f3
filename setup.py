from re import findall
from setuptools import setup


def pep_version(s: str) -> str:
    """Take initial numeric part from the string, to comply with PEP-440"""
    for i in range(0, len(s)):
        if not s[i] in "0123456789.":
            return s[:i].rstrip(".")
    return s


with open("debian/changelog", "r") as clog:
    _, version, _ = findall(
        r"(?P<src>.*) \((?P<version>.*)\) (?P<suite>.*); .*",
        clog.readline().strip(),
    )[0]

print(f"configuring package with version {pep_version(version)}")
setup(
    name="netlinknh",
    version=pep_version(version),
    description="Nexthop object management over rtnetlink",
    author="Eugene Crosser",
    author_email="evgenii.cherkashin@ionos.com",
    packages=["netlinknh"],
    package_data={"netlinknh": ["py.typed"]},
    python_requires=">=3.8",
    extras_require={
        "test": ["pyparsing>=3.1"],
        "lint": ["black>=24", "mypy", "pylint"],
    },
    entry_points={
        "console_scripts": ["nllnh=netlinknh.cli:run"],
    },
)
