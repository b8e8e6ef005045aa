"""
MCP GitHub Multi - 多账号 GitHub MCP服务器
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="mcp-github-multi",
    version="1.0.0",
    author="chre3",
    author_email="chremata3@gmail.com",
    description="多账号GitHub MCP服务器，提供文件、提交和仓库操作",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/chre3/mcp-github-multi",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Topic :: Software Development :: Version Control :: Git",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=21.0",
            "flake8>=3.8",
            "mypy>=0.910",
        ],
    },
    entry_points={
        "console_scripts": [
            "mcp-github-multi=mcp_github_multi.server:main",
        ],
    },
    keywords="github mcp server multi-account",
    project_urls={
        "Bug Reports": "https://github.com/chre3/mcp-github-multi/issues",
        "Source": "https://github.com/chre3/mcp-github-multi",
    },
)
