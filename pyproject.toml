[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xvkit"
version = "0.1.0"
description = "Models of a small teaching Unix: Sv39 page tables, ELF headers, a file-system image builder, a shell parser and the classic user tools"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "operating-system",
    "unix",
    "riscv",
    "sv39",
    "page-table",
    "elf",
    "mkfs",
    "shell",
    "teaching",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
    "Topic :: Education",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xv-mkfs = "xvkit.mkfs:main"
xv-grep = "xvkit.grep:main"
xv-cat = "xvkit.coreutils:cat_main"
xv-echo = "xvkit.coreutils:echo_main"
xv-wc = "xvkit.coreutils:wc_main"
xv-ls = "xvkit.coreutils:ls_main"
xv-ln = "xvkit.coreutils:ln_main"
xv-rm = "xvkit.coreutils:rm_main"
xv-mkdir = "xvkit.coreutils:mkdir_main"
xv-stressfs = "xvkit.stressfs:main"

[tool.hatch.build.targets.wheel]
packages = ["xvkit"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
