#!/usr/bin/env python3
"""
Install the setup Lambda's layer dependencies without Docker.

Downloads manylinux wheels listed in pgvector_store/layers/postgresql/requirements.txt
into pgvector_store/layers/postgresql/python, which DependenciesLayerConstruct
packages as a Lambda layer.

Usage:
    python setup_dependencies.py          # install
    python setup_dependencies.py clean    # remove installed packages
"""

import argparse
import logging
import shutil
import subprocess
import sys
from pathlib import Path

logger = logging.getLogger("setup_dependencies")

LAYER_DIR = Path(__file__).resolve().parent / "pgvector_store" / "layers" / "postgresql"
PYTHON_DIR = LAYER_DIR / "python"
REQUIREMENTS_FILE = LAYER_DIR / "requirements.txt"
PLACEHOLDER = "# Placeholder file for Lambda layer\n"


def pip_command(python_version: str) -> list:
    """Build the pip invocation as an argument list (no shell)."""
    return [
        sys.executable,
        "-m", "pip", "install",
        "--target", str(PYTHON_DIR),
        "--platform", "manylinux2014_x86_64",
        "--python-version", python_version,
        "--only-binary=:all:",
        "--upgrade",
        "-r", str(REQUIREMENTS_FILE),
    ]


def install_dependencies(python_version: str) -> bool:
    """Install layer dependencies. Returns False on failure."""
    if not REQUIREMENTS_FILE.exists():
        logger.error("Requirements file not found: %s", REQUIREMENTS_FILE)
        return False

    PYTHON_DIR.mkdir(parents=True, exist_ok=True)
    cmd = pip_command(python_version)
    logger.info("Installing %s into %s", REQUIREMENTS_FILE.name, PYTHON_DIR)

    try:
        subprocess.run(cmd, check=True, capture_output=True, text=True, shell=False)
    except subprocess.CalledProcessError as e:
        logger.error("pip failed with exit code %s\n%s", e.returncode, e.stderr)
        return False

    installed = sorted(p.name for p in PYTHON_DIR.iterdir() if p.is_dir())
    logger.info("Installed %d packages: %s", len(installed), ", ".join(installed))
    return True


def clean_dependencies() -> None:
    """Remove installed packages, leaving the placeholder the layer asset needs."""
    if PYTHON_DIR.exists():
        logger.info("Cleaning %s", PYTHON_DIR)
        shutil.rmtree(PYTHON_DIR)
    PYTHON_DIR.mkdir(parents=True, exist_ok=True)
    (PYTHON_DIR / "__init__.py").write_text(PLACEHOLDER)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    parser = argparse.ArgumentParser(description="Manage the pgvector setup Lambda layer")
    parser.add_argument("action", nargs="?", choices=["install", "clean"], default="install")
    parser.add_argument("--python-version", default="3.11", help="Lambda runtime version")
    args = parser.parse_args()

    if args.action == "clean":
        clean_dependencies()
        return

    if not install_dependencies(args.python_version):
        logger.error("Failed to install layer dependencies")
        sys.exit(1)

    logger.info("Layer ready, run 'cdk deploy' to deploy the stack")


if __name__ == "__main__":
    main()
